import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

from streamfinder.cli.main import (
    build_config,
    build_parser,
    main,
    process_url,
    validate_url,
    write_m3u,
)
from streamfinder.core.browser_session import SessionConfig
from streamfinder.core.errors import NavigationError
from streamfinder.core.extractor import ScrapeResult
from streamfinder.core.subtitles import Subtitle


def test_validate_url_valid():
    assert validate_url("https://google.com") is True
    assert validate_url("http://exemplo.com/video") is True
    assert validate_url("https://cdn10.example.com/v/1") is True

def test_validate_url_invalid():
    assert validate_url("not-a-url") is False
    assert validate_url("ftp://server.com") is False

def test_validate_url_ssrf_prevention():
    assert validate_url("http://localhost") is False
    assert validate_url("http://127.0.0.1") is False
    assert validate_url("http://192.168.1.1") is False
    assert validate_url("http://10.0.0.1") is False
    assert validate_url("http://172.16.0.1") is False

def test_validate_url_allow_private():
    assert validate_url("http://127.0.0.1:8000/player.html", allow_private=True) is True


def test_build_config_applies_flags_over_base():
    args = build_parser().parse_args([
        "https://exemplo.com/v",
        "--browser", "edge",
        "--no-headless",
        "--timeout", "60000",
        "--no-block",
    ])
    config = build_config(args, base=SessionConfig())
    assert config.browser == "edge"
    assert config.headless is False
    assert config.navigation_timeout == 60000
    assert config.block_heavy_resources is False

def test_build_config_keeps_base_when_no_flags():
    args = build_parser().parse_args(["https://exemplo.com/v"])
    base = SessionConfig(browser="chrome", headless=False)
    assert build_config(args, base=base) == base


def test_write_m3u(tmp_path):
    path = tmp_path / "saida.m3u"
    results = [
        {"source_url": "https://a.com/v", "urls": ["https://cdn.a.com/master.m3u8"], "subtitles": [], "error": None},
        {"source_url": "https://b.com/v", "urls": [], "subtitles": [], "error": "falhou"},
    ]
    assert write_m3u(results, str(path)) == 1
    lines = path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "#EXTM3U"
    assert lines[1].endswith("https://a.com/v")
    assert lines[2] == "https://cdn.a.com/master.m3u8"


def test_process_url_rejects_invalid_url():
    extractor = MagicMock()
    extractor.extract = AsyncMock()
    res = asyncio.run(process_url("not-a-url", extractor, MagicMock()))
    assert res["urls"] == []
    assert "inválida" in res["error"]
    extractor.extract.assert_not_awaited()

def test_process_url_reports_navigation_failure():
    extractor = MagicMock()
    extractor.extract = AsyncMock(side_effect=NavigationError("https://exemplo.com/v", "timeout"))
    res = asyncio.run(process_url("https://exemplo.com/v", extractor, MagicMock()))
    assert res["error"].startswith("Falha ao navegar")

def test_process_url_success():
    extractor = MagicMock()
    extractor.extract = AsyncMock(return_value=ScrapeResult(
        urls=["https://cdn.exemplo.com/a.m3u8"],
        subtitles=[Subtitle(url="https://cdn.exemplo.com/pt.vtt")],
    ))
    res = asyncio.run(process_url("https://exemplo.com/v", extractor, MagicMock(), with_subtitles=True))
    assert res == {
        "source_url": "https://exemplo.com/v",
        "urls": ["https://cdn.exemplo.com/a.m3u8"],
        "subtitles": [{"url": "https://cdn.exemplo.com/pt.vtt"}],
        "error": None,
    }
    extractor.extract.assert_awaited_once_with("https://exemplo.com/v", with_subtitles=True)


def test_main_without_urls():
    assert asyncio.run(main([])) == 2

def test_main_writes_playlist(tmp_path):
    out = tmp_path / "streams.m3u"
    with patch("streamfinder.cli.main.StreamExtractor") as extractor_cls:
        extractor_cls.return_value.extract = AsyncMock(
            return_value=ScrapeResult(urls=["https://cdn.exemplo.com/a.m3u8"])
        )
        code = asyncio.run(main(["https://exemplo.com/v", "-o", str(out)]))
    assert code == 0
    assert "https://cdn.exemplo.com/a.m3u8" in out.read_text(encoding="utf-8")

def test_main_fails_when_every_url_fails():
    assert asyncio.run(main(["not-a-url"])) == 1
