"""
Internationalization (i18n) for API messages.

Locale comes from the ``locale`` query parameter, then the
Accept-Language header.
"""

from typing import Optional

from fastapi import Request

SUPPORTED_LOCALES = ("en", "es")
DEFAULT_LOCALE = "en"


def normalize_locale(value: Optional[str]) -> Optional[str]:
    """``es-ES`` -> ``es``. None when unsupported."""
    if not value:
        return None
    lang = value.strip().split(";")[0].strip().lower().replace("_", "-").split("-")[0]
    return lang if lang in SUPPORTED_LOCALES else None


def get_locale(request: Request) -> str:
    """FastAPI dependency returning the best supported locale."""
    explicit = normalize_locale(request.query_params.get("locale"))
    if explicit:
        return explicit

    accept = request.headers.get("accept-language", "")
    for part in accept.split(","):
        lang = normalize_locale(part)
        if lang:
            return lang
    return DEFAULT_LOCALE


# ---------------------------------------------------------------------------
# Message catalogue
# ---------------------------------------------------------------------------
MESSAGES: dict[str, dict[str, str]] = {
    # ── Tenancy / auth ────────────────────────────────────────────────────
    "website_not_found": {
        "en": "Website not found",
        "es": "Sitio web no encontrado",
    },
    "not_authenticated": {
        "en": "Not authenticated",
        "es": "No autenticado",
    },
    "invalid_session": {
        "en": "Invalid or expired session",
        "es": "Sesión no válida o caducada",
    },
    "forbidden": {
        "en": "You do not have access to this website",
        "es": "No tienes acceso a este sitio web",
    },
    "signup_session_required": {
        "en": "Start signup from this browser first",
        "es": "Inicia el registro desde este navegador primero",
    },
    "admin_required": {
        "en": "Platform administrator access required",
        "es": "Se requiere acceso de administrador de la plataforma",
    },
    # ── Properties ────────────────────────────────────────────────────────
    "property_not_found": {
        "en": "Property not found",
        "es": "Propiedad no encontrada",
    },
    # ── Enquiries ─────────────────────────────────────────────────────────
    "invalid_email": {
        "en": "Email address is invalid",
        "es": "La dirección de correo no es válida",
    },
    "general_enquiry_title": {
        "en": "General enquiry from your website",
        "es": "Consulta general desde tu sitio web",
    },
    "property_enquiry_title": {
        "en": "Enquiry about {property}",
        "es": "Consulta sobre {property}",
    },
    "message_not_found": {
        "en": "Message not found",
        "es": "Mensaje no encontrado",
    },
    # ── Reports / videos ──────────────────────────────────────────────────
    "report_not_found": {
        "en": "Report not found",
        "es": "Informe no encontrado",
    },
    "video_not_found": {
        "en": "Video not found",
        "es": "Vídeo no encontrado",
    },
    "report_not_ready": {
        "en": "Report must be completed before it can be shared",
        "es": "El informe debe completarse antes de compartirlo",
    },
    "video_not_ready": {
        "en": "Video must finish rendering before it can be shared",
        "es": "El vídeo debe terminar de generarse antes de compartirlo",
    },
    # ── Price game ────────────────────────────────────────────────────────
    "game_not_found": {
        "en": "Game not found",
        "es": "Juego no encontrado",
    },
    "already_guessed": {
        "en": "You have already guessed the price of this property",
        "es": "Ya has adivinado el precio de esta propiedad",
    },
    "invalid_guess": {
        "en": "Please enter a valid price",
        "es": "Introduce un precio válido",
    },
    "price_game_title": {
        "en": "Guess the price of {property}",
        "es": "Adivina el precio de {property}",
    },
    # ── Signup / domains ──────────────────────────────────────────────────
    "subdomain_pool_empty": {
        "en": "No subdomains are available right now. Please try again later.",
        "es": "No hay subdominios disponibles ahora mismo. Inténtalo más tarde.",
    },
    "custom_domain_missing": {
        "en": "No custom domain is configured",
        "es": "No hay ningún dominio personalizado configurado",
    },
    "client_unavailable": {
        "en": "Client application unavailable",
        "es": "Aplicación cliente no disponible",
    },
    "shard_unknown": {
        "en": "Unknown shard",
        "es": "Shard desconocido",
    },
}


def translate(key: str, locale: str = DEFAULT_LOCALE, **kwargs) -> str:
    """
    Translate a message key to the given locale.

    Args:
        key: Message key from the MESSAGES dict
        locale: 'en' or 'es'
        **kwargs: Format variables (e.g. property=...)

    Returns:
        Translated and formatted string
    """
    if locale not in SUPPORTED_LOCALES:
        locale = DEFAULT_LOCALE

    entry = MESSAGES.get(key)
    if entry is None:
        return key

    message = entry.get(locale, entry.get(DEFAULT_LOCALE, key))

    if kwargs:
        try:
            message = message.format(**kwargs)
        except (KeyError, IndexError):
            pass

    return message
