"""HTML output for a selected banner.

The wrapper carries everything the impression tracker needs as data attributes
(placement slug, banner id, placement id, tracking token).
"""
from html import escape
from typing import Optional
from urllib.parse import urlsplit

from banner_service.services.media import MediaResolver
from banner_service.services.records import BannerRecord, PlacementRecord
from banner_service.services.token_signer import TokenSigner

MOBILE_BREAKPOINT = "(max-width: 768px)"
SAFE_SCHEMES = ("http", "https")
INLINE_STYLE = "<style>.banner-slot{display:block}.banner-slot img{max-width:100%;height:auto;display:block}</style>"


def _attr(value) -> str:
    return escape(str(value), quote=True)


def safe_url(url: Optional[str]) -> str:
    """Return the URL when it is http(s) or rooted at "/" (site or protocol relative), else ""."""
    if not url:
        return ""
    url = url.strip()
    if any(ch in url for ch in ("\n", "\r", "\t", "\x00")):
        return ""
    parts = urlsplit(url)
    if parts.scheme:
        return url if parts.scheme.lower() in SAFE_SCHEMES and parts.netloc else ""
    return url if url.startswith("/") else ""


class BannerRenderer:
    def __init__(self, signer: TokenSigner, media: MediaResolver):
        self.signer = signer
        self.media = media

    def render(self, banner: BannerRecord, placement: PlacementRecord) -> str:
        image_html = self.image_html(banner)
        if not image_html:
            return ""

        token = self.signer.generate(banner.id, placement.id)
        link_url = safe_url(banner.desktop_url)

        output = (
            f'<div class="banner-slot" data-placement="{_attr(placement.slug)}"'
            f' data-banner-id="{_attr(banner.id)}" data-placement-id="{_attr(placement.id)}"'
            f' data-track-token="{_attr(token)}">'
        )
        output += INLINE_STYLE
        if link_url:
            output += f'<a href="{_attr(link_url)}" target="_blank" rel="noopener noreferrer">{image_html}</a>'
        else:
            output += image_html
        output += "</div>"
        return output

    def image_html(self, banner: BannerRecord) -> str:
        desktop = self.media.resolve(banner.desktop_image_id)
        mobile = self.media.resolve(banner.mobile_image_id)
        desktop_url = safe_url(desktop.url) if desktop else ""
        mobile_url = safe_url(mobile.url) if mobile else ""

        # One side missing: reuse the other for both breakpoints
        desktop_url = desktop_url or mobile_url
        mobile_url = mobile_url or desktop_url
        if not desktop_url:
            return ""

        html = "<picture>"
        if mobile_url != desktop_url:
            html += f'<source media="{MOBILE_BREAKPOINT}" srcset="{_attr(mobile_url)}">'
        html += f'<img src="{_attr(desktop_url)}" alt="{_attr(self.alt_text(banner))}" loading="lazy">'
        html += "</picture>"
        return html

    def alt_text(self, banner: BannerRecord) -> str:
        for image_id in (banner.desktop_image_id, banner.mobile_image_id):
            image = self.media.resolve(image_id)
            if image and image.alt:
                return image.alt
        return banner.title or ""
