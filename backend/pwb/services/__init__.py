"""
Services package - Business logic and integrations.

Structure:
- pwb.services.domains - Host resolution, domain validation and verification
- pwb.services.subdomain_pool - Pre-generated subdomains for signups
- pwb.services.provisioning - Website lifecycle and signup
- pwb.services.rendering - Themes and client rendering
- pwb.services.search_params / property_search - Listing search
- pwb.services.enquiries / mailer - Contact forms and notifications
- pwb.services.reports - CMA reports
- pwb.services.price_game - Guess-the-price game
- pwb.services.listing_videos - Listing video records
- pwb.services.exchange_rates - ECB currency rates
- pwb.services.shards - Database shard assignment
"""
