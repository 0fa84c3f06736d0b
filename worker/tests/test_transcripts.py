from smartnotes.services import transcripts
from smartnotes.services.transcripts import acquire_transcript, clean_captions, usable_transcript

VTT = """WEBVTT
Kind: captions
Language: en

00:00:00.000 --> 00:00:02.500 align:start position:0%
Welcome<00:00:00.500><c> to</c><00:00:01.000><c> Spring</c> Boot

00:00:02.500 --> 00:00:04.000 align:start position:0%
Welcome to Spring Boot

00:00:04.000 --> 00:00:06.000
Today we cover dependency injection.
"""

SRT = """1
00:00:00,000 --> 00:00:02,000
Hello there.

2
00:00:02,000 --> 00:00:04,000
General Kenobi.
"""


def test_clean_vtt_drops_timing_tags_and_scroll_duplicates():
    assert clean_captions(VTT) == "Welcome to Spring Boot\nToday we cover dependency injection."


def test_clean_srt():
    assert clean_captions(SRT) == "Hello there.\nGeneral Kenobi."


def test_usable_transcript_threshold():
    assert usable_transcript(None) is None
    assert usable_transcript("   ") is None
    assert usable_transcript("short", min_chars=100) is None
    assert usable_transcript("  " + "a" * 100 + "  ", min_chars=100) == "a" * 100


def test_acquire_transcript_uses_captions(monkeypatch):
    text = "caption text " * 20
    monkeypatch.setattr(transcripts, "fetch_captions", lambda url, lang: text)
    assert acquire_transcript("https://youtu.be/x") == text.strip()


def test_acquire_transcript_short_captions_mean_missing(monkeypatch):
    monkeypatch.setattr(transcripts, "fetch_captions", lambda url, lang: "too short")
    assert acquire_transcript("https://youtu.be/x") is None


def test_acquire_transcript_swallows_download_errors(monkeypatch):
    def _fail(url, lang):
        raise OSError("network down")

    monkeypatch.setattr(transcripts, "fetch_captions", _fail)
    assert acquire_transcript("https://youtu.be/x") is None


def test_caption_language_prefers_requested_language_over_manual_tracks():
    manual = {"de": [{}]}
    automatic = {"de": [{}], "en": [{}]}
    assert transcripts.pick_caption_language(manual, automatic, "en") == "en"
    assert transcripts.pick_caption_language({"en-GB": [{}]}, automatic, "en") == "en-GB"
    assert transcripts.pick_caption_language(manual, {"fr": [{}]}, "en") == "de"
    assert transcripts.pick_caption_language({}, {}, "en") is None
