"""Unit tests for mkv2mp4.subtitles.convert.

Scripts are written inline to ``tmp_path``; no real media is required.
"""

from __future__ import annotations

import os
import stat
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from mkv2mp4.config import ConversionOptions, DedupPolicy
from mkv2mp4.errors import (
    FieldCountMismatchError,
    InvalidTimecodeError,
    MissingEventsSectionError,
    MissingFieldError,
    MissingFormatError,
    SubtitleReadError,
)
from mkv2mp4.models import ConversionResult
from mkv2mp4.subtitles import convert, convert_many, convert_text

_HEADER = """\
[Script Info]
ScriptType: v4.00+
PlayResX: 640
PlayResY: 480

[V4+ Styles]
Format: Name, Fontname, Fontsize, PrimaryColour, SecondaryColour, OutlineColour, BackColour, Bold, Italic, Underline, StrikeOut, ScaleX, ScaleY, Spacing, Angle, BorderStyle, Outline, Shadow, Alignment, MarginL, MarginR, MarginV, Encoding
Style: Default,Arial,20,&H00FFFFFF,&H000000FF,&H00000000,&H00000000,0,0,0,0,100,100,0,0,1,2,2,2,10,10,10,1

[Events]
Format: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text
"""


def _script(*dialogue: str) -> str:
    return _HEADER + "".join(f"Dialogue: {line}\n" for line in dialogue)


def _write(tmp_path: Path, content: str, name: str = "show.ass") -> Path:
    path = tmp_path / name
    path.write_text(content, encoding="utf-8")
    return path


class TestScenarios:
    def test_line_break_block(self, tmp_path: Path) -> None:
        """A single dialogue line with \\N becomes one two-line block."""
        src = _write(tmp_path, _script(r"0,0:00:01.00,0:00:03.50,Default,,0,0,0,,Hello\Nworld"))
        out = tmp_path / "show.srt"

        result = convert(src, out)

        assert out.read_text(encoding="utf-8") == "1\n00:00:01.000 --> 00:00:03.500\nHello\nworld\n\n"
        assert result.entry_count == 1
        assert result.output == out

    def test_shared_timecode_merges(self, tmp_path: Path) -> None:
        src = _write(tmp_path, _script(
            "0,0:00:05.00,0:00:07.00,Default,,0,0,0,,Hi",
            "0,0:00:05.00,0:00:07.00,Default,,0,0,0,,There",
        ))
        out = tmp_path / "show.srt"

        result = convert(src, out)

        assert out.read_text(encoding="utf-8") == "1\n00:00:05.000 --> 00:00:07.000\nHi\nThere\n\n"
        assert result.entry_count == 1
        assert result.event_count == 2
        assert result.merged_count == 1

    def test_override_only_text_emits_nothing(self, tmp_path: Path) -> None:
        src = _write(tmp_path, _script(r"0,0:00:01.00,0:00:02.00,Default,,0,0,0,,{\an8}"))
        out = tmp_path / "show.srt"

        result = convert(src, out)

        assert out.read_text(encoding="utf-8") == ""
        assert result.entry_count == 0
        assert result.skipped_count == 1

    def test_dialogue_before_format_aborts(self, tmp_path: Path) -> None:
        content = "[Events]\nDialogue: 0,0:00:01.00,0:00:02.00,Default,,0,0,0,,Hi\n"
        src = _write(tmp_path, content)
        out = tmp_path / "show.srt"

        with pytest.raises(MissingFormatError) as exc_info:
            convert(src, out)

        assert exc_info.value.line_no == 2
        assert not out.exists()


class TestConvertText:
    def test_chronological_numbering(self) -> None:
        srt, result = convert_text(_script(
            "0,0:00:10.00,0:00:11.00,Default,,0,0,0,,third",
            "0,0:00:01.00,0:00:02.00,Default,,0,0,0,,first",
            "0,0:00:05.00,0:00:06.00,Default,,0,0,0,,second",
        ))
        blocks = srt.split("\n\n")[:-1]
        assert [b.split("\n")[0] for b in blocks] == ["1", "2", "3"]
        assert [b.split("\n")[2] for b in blocks] == ["first", "second", "third"]
        assert result.entry_count == 3

    def test_skipped_event_consumes_no_index(self) -> None:
        srt, result = convert_text(_script(
            "0,0:00:01.00,0:00:02.00,Default,,0,0,0,,one",
            r"0,0:00:02.00,0:00:03.00,Default,,0,0,0,,{\p1}",
            "0,0:00:03.00,0:00:04.00,Default,,0,0,0,,two",
        ))
        assert srt.startswith("1\n00:00:01.000")
        assert "\n\n2\n00:00:03.000 --> 00:00:04.000\ntwo\n\n" in srt
        assert result.skipped_count == 1

    def test_commas_in_text(self) -> None:
        srt, _ = convert_text(_script("0,0:00:01.00,0:00:02.00,Default,,0,0,0,,Well, yes, maybe"))
        assert "Well, yes, maybe\n" in srt

    def test_styling_markers(self) -> None:
        srt, _ = convert_text(_script(r"0,0:00:01.00,0:00:02.00,Default,,0,0,0,,{\i1}Whisper{\i0}"))
        assert "<i>Whisper</i>\n" in srt

    def test_comment_lines_ignored(self) -> None:
        content = _script("0,0:00:01.00,0:00:02.00,Default,,0,0,0,,kept")
        content += "Comment: 0,0:00:03.00,0:00:04.00,Default,,0,0,0,,hidden\n"
        srt, result = convert_text(content)
        assert "hidden" not in srt
        assert result.entry_count == 1

    def test_exact_duplicates_dropped_by_default(self) -> None:
        line = "0,0:00:01.00,0:00:02.00,Default,,0,0,0,,Echo"
        srt, result = convert_text(_script(line, line))
        assert srt == "1\n00:00:01.000 --> 00:00:02.000\nEcho\n\n"
        assert result.duplicate_count == 1

    def test_always_append_policy(self) -> None:
        line = "0,0:00:01.00,0:00:02.00,Default,,0,0,0,,Echo"
        srt, _ = convert_text(_script(line, line), ConversionOptions(dedup=DedupPolicy.NONE))
        assert srt == "1\n00:00:01.000 --> 00:00:02.000\nEcho\nEcho\n\n"

    def test_text_first_with_commas_misparses(self) -> None:
        content = "[Events]\nFormat: Text, Start, End\nDialogue: Hi, there,0:00:01.00,0:00:02.00\n"
        with pytest.raises(InvalidTimecodeError):
            # Text is first here, so its comma shifts the timecodes.
            convert_text(content)

    def test_text_first_without_commas(self) -> None:
        content = "[Events]\nFormat: Text, Start, End\nDialogue: Hi,0:00:01.00,0:00:02.00\n"
        srt, _ = convert_text(content)
        assert srt == "1\n00:00:01.000 --> 00:00:02.000\nHi\n\n"

    def test_no_events_section(self) -> None:
        with pytest.raises(MissingEventsSectionError):
            convert_text("[Script Info]\nTitle: nothing\n")

    def test_empty_events_section(self) -> None:
        srt, result = convert_text("[Events]\n")
        assert srt == ""
        assert result.entry_count == 0

    def test_missing_field(self) -> None:
        with pytest.raises(MissingFieldError):
            convert_text("[Events]\nFormat: Layer, Start, Style, Text\n")

    def test_field_count_mismatch(self) -> None:
        with pytest.raises(FieldCountMismatchError):
            convert_text(_script("0,0:00:01.00,0:00:02.00"))

    def test_invalid_timecode(self) -> None:
        with pytest.raises(InvalidTimecodeError) as exc_info:
            convert_text(_script("0,soon,0:00:02.00,Default,,0,0,0,,Hi"))
        assert exc_info.value.value == "soon"

    def test_bad_timecode_on_textless_line_raises(self) -> None:
        with pytest.raises(InvalidTimecodeError) as exc_info:
            convert_text(_script(r"0,garbage,0:00:02.00,Default,,0,0,0,,{\an8}"))
        assert exc_info.value.value == "garbage"

    @pytest.mark.parametrize("separator", ["\u2028", "\u2029", "\x85", "\x0c", "\x1c", "\x1e"])
    def test_unicode_separators_stay_in_text(self, separator: str) -> None:
        srt, _ = convert_text(_script(f"0,0:00:01.00,0:00:02.00,Default,,0,0,0,,Hello{separator}world"))
        assert srt == f"1\n00:00:01.000 --> 00:00:02.000\nHello{separator}world\n\n"

    def test_bare_carriage_return_line_endings(self) -> None:
        content = _script(
            "0,0:00:01.00,0:00:02.00,Default,,0,0,0,,one",
            "0,0:00:03.00,0:00:04.00,Default,,0,0,0,,two",
        ).replace("\n", "\r")
        srt, result = convert_text(content)
        assert result.entry_count == 2
        assert "\r" not in srt

    def test_dialogue_outside_events_ignored(self) -> None:
        content = _script("0,0:00:01.00,0:00:02.00,Default,,0,0,0,,in")
        content += "[Fonts]\nDialogue: 0,0:00:03.00,0:00:04.00,Default,,0,0,0,,out\n"
        srt, _ = convert_text(content)
        assert "out" not in srt

    def test_deterministic(self) -> None:
        content = _script(
            "0,0:00:05.00,0:00:07.00,Default,,0,0,0,,b",
            "0,0:00:01.00,0:00:02.00,Default,,0,0,0,,a",
            "0,0:00:05.00,0:00:07.00,Default,,0,0,0,,c",
        )
        assert convert_text(content)[0] == convert_text(content)[0]


class TestConvertFiles:
    def test_crlf_and_bom(self, tmp_path: Path) -> None:
        content = _script("0,0:00:01.00,0:00:02.00,Default,,0,0,0,,Hi").replace("\n", "\r\n")
        src = tmp_path / "show.ass"
        src.write_bytes(content.encode("utf-8-sig"))
        out = tmp_path / "show.srt"

        convert(src, out)

        assert out.read_bytes() == b"1\n00:00:01.000 --> 00:00:02.000\nHi\n\n"

    def test_explicit_encoding(self, tmp_path: Path) -> None:
        src = tmp_path / "show.ass"
        src.write_bytes(_script("0,0:00:01.00,0:00:02.00,Default,,0,0,0,,Café").encode("cp1252"))
        out = tmp_path / "show.srt"

        convert(src, out, ConversionOptions(encoding="cp1252"))

        assert "Café" in out.read_text(encoding="utf-8")

    def test_latin1_next_line_byte_kept_in_dialogue(self, tmp_path: Path) -> None:
        src = tmp_path / "show.ass"
        # 0x85 decodes to U+0085 (NEL) in Latin-1.
        src.write_bytes(_script("0,0:00:01.00,0:00:02.00,Default,,0,0,0,,Wait\x85what").encode("latin-1"))
        out = tmp_path / "show.srt"

        convert(src, out, ConversionOptions(encoding="latin-1"))

        assert out.read_text(encoding="utf-8") == "1\n00:00:01.000 --> 00:00:02.000\nWait\x85what\n\n"

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_output_honors_umask(self, tmp_path: Path) -> None:
        umask = os.umask(0)
        os.umask(umask)
        src = _write(tmp_path, _script("0,0:00:01.00,0:00:02.00,Default,,0,0,0,,Hi"))
        out = tmp_path / "show.srt"

        convert(src, out)

        assert stat.S_IMODE(out.stat().st_mode) == 0o666 & ~umask

    def test_detected_encoding(self, tmp_path: Path) -> None:
        src = tmp_path / "show.ass"
        src.write_bytes(b"\xff\xfe not utf-8")
        best = MagicMock()
        best.encoding = "latin-1"
        best.__str__.return_value = _script("0,0:00:01.00,0:00:02.00,Default,,0,0,0,,Detected")
        with patch("mkv2mp4.subtitles.convert.from_bytes") as mock_from_bytes:
            mock_from_bytes.return_value.best.return_value = best
            result = convert(src, tmp_path / "show.srt")
        assert result.entry_count == 1

    def test_undetectable_encoding(self, tmp_path: Path) -> None:
        src = tmp_path / "show.ass"
        src.write_bytes(b"\xff\xfe not utf-8")
        with patch("mkv2mp4.subtitles.convert.from_bytes") as mock_from_bytes:
            mock_from_bytes.return_value.best.return_value = None
            with pytest.raises(SubtitleReadError):
                convert(src, tmp_path / "show.srt")

    def test_missing_input(self, tmp_path: Path) -> None:
        with pytest.raises(SubtitleReadError) as exc_info:
            convert(tmp_path / "absent.ass", tmp_path / "absent.srt")
        assert exc_info.value.path == tmp_path / "absent.ass"

    def test_rerun_is_byte_identical(self, tmp_path: Path) -> None:
        src = _write(tmp_path, _script(
            "0,0:00:05.00,0:00:07.00,Default,,0,0,0,,Hi",
            "0,0:00:01.00,0:00:02.00,Default,,0,0,0,,First",
        ))
        convert(src, tmp_path / "a.srt")
        convert(src, tmp_path / "b.srt")
        assert (tmp_path / "a.srt").read_bytes() == (tmp_path / "b.srt").read_bytes()


class TestConvertMany:
    @pytest.mark.parametrize("workers", [1, 3])
    def test_failure_isolated(self, tmp_path: Path, workers: int) -> None:
        good = _write(tmp_path, _script("0,0:00:01.00,0:00:02.00,Default,,0,0,0,,ok"), "good.ass")
        bad = _write(tmp_path, "[Events]\nDialogue: 0,0:00:01.00,0:00:02.00,,,0,0,0,,x\n", "bad.ass")
        other = _write(tmp_path, _script("0,0:00:01.00,0:00:02.00,Default,,0,0,0,,fine"), "other.ass")
        jobs = [(p, p.with_suffix(".srt")) for p in (good, bad, other)]

        outcomes = convert_many(jobs, workers=workers)

        assert isinstance(outcomes[0], ConversionResult)
        assert isinstance(outcomes[1], MissingFormatError)
        assert isinstance(outcomes[2], ConversionResult)
        assert (tmp_path / "good.srt").exists()
        assert not (tmp_path / "bad.srt").exists()
        assert (tmp_path / "other.srt").exists()
