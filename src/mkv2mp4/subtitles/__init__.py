"""ASS/SSA -> SRT conversion engine."""
from mkv2mp4.subtitles.convert import convert, convert_many, convert_text, parse_ass_lines, read_script
from mkv2mp4.subtitles.text import clean_text
from mkv2mp4.subtitles.timecode import format_timecode

__all__ = [
    "convert",
    "convert_many",
    "convert_text",
    "parse_ass_lines",
    "read_script",
    "clean_text",
    "format_timecode",
]
