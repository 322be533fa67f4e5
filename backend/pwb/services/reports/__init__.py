"""
Market reports - comparative market analysis (CMA).

- comparables: candidate search, similarity scoring, price adjustments
- statistics: price and size statistics over comparables
- insights: Claude narrative and suggested price range
- generator: orchestration and report state
"""
