import random
from datetime import date

from banner_service.models.banner import Banner
from banner_service.models.banner_placement import BannerPlacement
from banner_service.models.media import MediaAsset
from banner_service.models.placement import Placement
from banner_service.services.embed import expand_banner_tags, render_placement
from banner_service.services.kv_store import MemoryKeyValueStore
from banner_service.services.media import DbMediaResolver, MediaImage
from banner_service.services.records import BannerRecord, PlacementRecord
from banner_service.services.renderer import BannerRenderer, safe_url
from banner_service.services.selector import BannerSelector
from banner_service.services.token_signer import TokenSigner

DAY = date(2030, 1, 2)


class FakeMedia:
    def __init__(self, images):
        self.images = images

    def resolve(self, image_id):
        return self.images.get(image_id)


def make_renderer(images):
    signer = TokenSigner(MemoryKeyValueStore(), today=lambda: DAY)
    return BannerRenderer(signer, FakeMedia(images)), signer


PLACEMENT = PlacementRecord(id=3, slug="header", name="Header")


def test_render_full_markup():
    renderer, signer = make_renderer({1: MediaImage("https://cdn.example.com/d.png", "Desktop alt"), 2: MediaImage("https://cdn.example.com/m.png")})
    banner = BannerRecord(id=7, title="Sale", desktop_url="https://shop.example.com/sale", desktop_image_id=1, mobile_image_id=2)
    html = renderer.render(banner, PLACEMENT)
    token = signer.generate(7, 3)
    assert html.startswith('<div class="banner-slot" data-placement="header" data-banner-id="7" data-placement-id="3"')
    assert f'data-track-token="{token}"' in html
    assert '<a href="https://shop.example.com/sale" target="_blank" rel="noopener noreferrer">' in html
    assert '<source media="(max-width: 768px)" srcset="https://cdn.example.com/m.png">' in html
    assert '<img src="https://cdn.example.com/d.png" alt="Desktop alt" loading="lazy">' in html
    assert html.endswith("</div>")


def test_single_image_serves_both_breakpoints():
    renderer, _ = make_renderer({2: MediaImage("https://cdn.example.com/m.png")})
    banner = BannerRecord(id=1, title="Only mobile", desktop_url="https://example.com", mobile_image_id=2)
    html = renderer.render(banner, PLACEMENT)
    assert "<source" not in html
    assert 'src="https://cdn.example.com/m.png"' in html
    assert 'alt="Only mobile"' in html


def test_no_resolvable_image_renders_nothing():
    renderer, _ = make_renderer({})
    banner = BannerRecord(id=1, title="Ghost", desktop_url="https://example.com", desktop_image_id=99)
    assert renderer.render(banner, PLACEMENT) == ""


def test_unsafe_link_is_dropped_and_attributes_escaped():
    renderer, _ = make_renderer({1: MediaImage("https://cdn.example.com/a.png")})
    banner = BannerRecord(id=1, title='"><script>x</script>', desktop_url="javascript:alert(1)", desktop_image_id=1)
    html = renderer.render(banner, PlacementRecord(id=3, slug='he"ader'))
    assert "<a " not in html
    assert "<script>" not in html
    assert 'alt="&quot;&gt;&lt;script&gt;x&lt;/script&gt;"' in html
    assert 'data-placement="he&quot;ader"' in html


def test_safe_url():
    assert safe_url("https://example.com/x") == "https://example.com/x"
    assert safe_url("//cdn.example.com/x.png") == "//cdn.example.com/x.png"
    assert safe_url("/uploads/x.png") == "/uploads/x.png"
    assert safe_url("javascript:alert(1)") == ""
    assert safe_url("data:image/png;base64,AAAA") == ""
    assert safe_url("ftp://example.com/x") == ""
    assert safe_url("") == ""


def test_expand_banner_tags_accepts_any_quoting():
    content = 'A [banner placement="top"] B [banner placement=\'side\'] C [Banner placement=foot]'
    assert expand_banner_tags(content, lambda slug: f"<{slug}>") == "A <top> B <side> C <foot>"


def test_expand_without_tags_is_identity():
    assert expand_banner_tags("plain text", lambda slug: "x") == "plain text"


def _seed(db):
    image = MediaAsset(url="https://cdn.example.com/hero.png", alt_text="Hero")
    db.add(image)
    db.commit()
    placement = Placement(slug="hero", name="Hero", rotation_strategy="sequential")
    first = Banner(title="First", desktop_url="https://example.com/1", desktop_image_id=image.id)
    second = Banner(title="Second", desktop_url="https://example.com/2", desktop_image_id=image.id)
    db.add_all([placement, first, second])
    db.commit()
    db.add_all([
        BannerPlacement(banner_id=second.id, placement_id=placement.id, position=1),
        BannerPlacement(banner_id=first.id, placement_id=placement.id, position=0),
    ])
    db.commit()
    return placement, first, second


def test_render_placement_rotates_sequentially(db):
    placement, first, second = _seed(db)
    signer = TokenSigner(MemoryKeyValueStore())
    renderer = BannerRenderer(signer, DbMediaResolver(db))
    selector = BannerSelector(MemoryKeyValueStore(), rng=random.Random(0))
    html1 = render_placement(db, "hero", selector, renderer)
    html2 = render_placement(db, "hero", selector, renderer)
    assert f'data-banner-id="{first.id}"' in html1
    assert f'data-banner-id="{second.id}"' in html2
    assert 'alt="Hero"' in html1


def test_render_placement_dead_ends_are_empty(db):
    _seed(db)
    db.add(Placement(slug="empty", name="Empty"))
    db.commit()
    renderer = BannerRenderer(TokenSigner(MemoryKeyValueStore()), DbMediaResolver(db))
    selector = BannerSelector(MemoryKeyValueStore())
    assert render_placement(db, "", selector, renderer) == ""
    assert render_placement(db, "missing", selector, renderer) == ""
    assert render_placement(db, "empty", selector, renderer) == ""
