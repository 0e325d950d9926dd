import pytest

from smartboard.constants import COUNTDOWN_SLIDE_KEY
from smartboard.domain.board import BoardInstance
from smartboard.domain.exceptions import ImageLoadFailure
from smartboard.enums.board import BoardKind
from smartboard.services.display.background_coordinator import (
    BackgroundCoordinator,
    configured_background_urls,
    resolve_background,
)


def _board(slide_key, kind=BoardKind.HALACHOT):
    return BoardInstance(board_ref=kind, name=slide_key, duration_ms=10_000, slide_key=slide_key)


HALACHOT = _board("Halachot")
BRACHOT = _board("Brachot")
REFUAH = _board("Refuah")
NIFTARIM = _board("Niftarim")
COUNTDOWN = BoardInstance(board_ref=BoardKind.COUNTDOWN, name="c", duration_ms=0, slide_key=COUNTDOWN_SLIDE_KEY)


@pytest.fixture()
def snapshot(make_snapshot):
    return make_snapshot(
        settings={"countdown_background_image": "https://cdn/countdown.jpg", "countdown_bg_opacity": 80},
        slide_settings=[
            {"slide_name": "Halachot", "background_image": "https://cdn/halachot.jpg", "overlay_opacity": 40},
            {"slide_name": "Brachot", "background_image": "https://cdn/brachot.jpg", "overlay_color": "#112233"},
            {"slide_name": "Refuah", "background_image": "https://cdn/halachot.jpg", "overlay_opacity": 10},
            {"slide_name": "Niftarim", "background_image": "https://cdn/niftarim.jpg"},
            {"slide_name": "Halachot", "background_image": "https://cdn/older.jpg"},
        ],
    )


@pytest.fixture()
def coordinator(image_loader, timers, snapshot):
    return BackgroundCoordinator(image_loader, timers, snapshot_source=lambda: snapshot, crossfade_ms=800)


def test_resolution_uses_newest_slide_settings(snapshot):
    resolution = resolve_background(HALACHOT, snapshot)

    assert resolution.image_url == "https://cdn/halachot.jpg"
    assert resolution.overlay_opacity == pytest.approx(0.4)
    assert resolution.overlay_color == "#000000"


def test_countdown_uses_settings_image(snapshot, make_snapshot):
    resolution = resolve_background(COUNTDOWN, snapshot)

    assert resolution.image_url == "https://cdn/countdown.jpg"
    assert resolution.overlay_opacity == pytest.approx(0.8)
    assert resolve_background(COUNTDOWN, make_snapshot(settings={})).image_url is None


def test_theme_preset_overrides_overlay(make_snapshot):
    snapshot = make_snapshot(
        settings={"theme_preset": "ocean"},
        slide_settings=[{"slide_name": "Halachot", "background_image": "x.jpg", "overlay_color": "#123456"}],
    )

    resolution = resolve_background(HALACHOT, snapshot)

    assert resolution.overlay_color == "#0ea5e9"
    assert resolution.overlay_opacity == pytest.approx(0.2)


def test_unconfigured_board_shows_gradient(snapshot):
    assert resolve_background(_board("Modaot"), snapshot).image_url is None
    assert resolve_background(HALACHOT, None).image_url is None


def test_configured_urls_are_unique_in_first_seen_order(snapshot):
    assert configured_background_urls(snapshot) == [
        "https://cdn/countdown.jpg",
        "https://cdn/halachot.jpg",
        "https://cdn/brachot.jpg",
        "https://cdn/niftarim.jpg",
        "https://cdn/older.jpg",
    ]


def test_old_image_stays_until_new_one_loads_then_crossfades(coordinator, image_loader, timers):
    image_loader.cached.add("https://cdn/halachot.jpg")
    coordinator.show(HALACHOT)
    assert coordinator.layers.current_image == "https://cdn/halachot.jpg"
    assert coordinator.layers.previous_image is None

    coordinator.show(BRACHOT)
    assert coordinator.layers.current_image == "https://cdn/halachot.jpg"
    assert coordinator.pending_url == "https://cdn/brachot.jpg"

    image_loader.complete("https://cdn/brachot.jpg")
    assert coordinator.layers.current_image == "https://cdn/brachot.jpg"
    assert coordinator.layers.previous_image == "https://cdn/halachot.jpg"
    assert coordinator.layers.overlay_color == "#112233"

    timers.advance(0.75)
    assert coordinator.is_crossfading
    timers.advance(0.1)
    assert coordinator.layers.previous_image is None
    assert not coordinator.is_crossfading


def test_same_url_does_not_crossfade(coordinator, image_loader, timers):
    image_loader.cached.add("https://cdn/halachot.jpg")
    coordinator.show(HALACHOT)
    before = coordinator.layers

    coordinator.show(REFUAH)

    assert coordinator.layers.current_image == before.current_image
    assert coordinator.layers.previous_image == before.previous_image
    assert coordinator.layers.overlay_opacity == pytest.approx(0.1)
    assert not coordinator.is_crossfading
    assert timers.pending == []


def test_first_image_appears_without_crossfade(coordinator, image_loader, timers):
    coordinator.show(HALACHOT)
    image_loader.complete("https://cdn/halachot.jpg")

    assert coordinator.layers.current_image == "https://cdn/halachot.jpg"
    assert coordinator.layers.previous_image is None
    assert timers.pending == []


def test_failed_load_falls_back_to_gradient(coordinator, image_loader):
    image_loader.cached.add("https://cdn/halachot.jpg")
    coordinator.show(HALACHOT)
    coordinator.show(BRACHOT)

    image_loader.complete("https://cdn/brachot.jpg", error=ImageLoadFailure("https://cdn/brachot.jpg"))

    assert coordinator.layers.current_image is None
    assert coordinator.layers.previous_image == "https://cdn/halachot.jpg"
    assert coordinator.pending_url is None


def test_superseded_load_is_ignored(coordinator, image_loader):
    coordinator.show(BRACHOT)
    coordinator.show(NIFTARIM)

    image_loader.complete("https://cdn/brachot.jpg")
    assert coordinator.layers.current_image is None

    image_loader.complete("https://cdn/niftarim.jpg")
    assert coordinator.layers.current_image == "https://cdn/niftarim.jpg"


def test_board_without_image_clears_to_gradient(coordinator, image_loader):
    image_loader.cached.add("https://cdn/halachot.jpg")
    coordinator.show(HALACHOT)
    coordinator.show(BRACHOT)

    coordinator.show(_board("Modaot"))
    image_loader.complete("https://cdn/brachot.jpg")

    assert coordinator.layers.current_image is None
    assert coordinator.pending_url is None


def test_upcoming_boards_are_preloaded(coordinator, image_loader):
    image_loader.cached.add("https://cdn/halachot.jpg")
    boards = [HALACHOT, BRACHOT, NIFTARIM, REFUAH]

    coordinator.show(HALACHOT, boards, 0)

    assert image_loader.requests == ["https://cdn/brachot.jpg", "https://cdn/niftarim.jpg"]


def test_preload_all_calls_back_once_after_every_url(coordinator, image_loader):
    done = []
    urls = ["https://cdn/a.jpg", "https://cdn/b.jpg", "https://cdn/a.jpg"]

    coordinator.preload_all(urls, lambda: done.append(True))
    image_loader.complete("https://cdn/a.jpg")
    assert done == []
    image_loader.complete("https://cdn/b.jpg", error=ImageLoadFailure("https://cdn/b.jpg"))

    assert done == [True]


def test_preload_all_with_nothing_to_load_completes_immediately(coordinator):
    done = []

    coordinator.preload_all([], lambda: done.append(True))

    assert done == [True]


def test_background_changes_are_published(coordinator, image_loader):
    seen = []
    coordinator.subscribe(seen.append)
    image_loader.cached.update({"https://cdn/halachot.jpg", "https://cdn/brachot.jpg"})

    coordinator.show(HALACHOT)
    coordinator.show(BRACHOT)

    assert [layers.current_image for layers in seen] == ["https://cdn/halachot.jpg", "https://cdn/brachot.jpg"]
