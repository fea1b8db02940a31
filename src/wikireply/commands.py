from __future__ import annotations

import json
import logging
import sys
from pathlib import Path

from .config import DEFAULT_CONFIG, PRESETS, WikitextConfig, load_config
from .locator import LocateFailure, locate, locate_or_raise
from .source import CommentData
from .transformer import TransformRequest, transform

logger = logging.getLogger(__name__)


def resolve_config(config_path: Path | None = None, preset: str | None = None) -> WikitextConfig:
    base = DEFAULT_CONFIG
    if preset is not None:
        if preset not in PRESETS:
            raise ValueError(f"Unknown preset '{preset}'. Use one of: {', '.join(sorted(PRESETS))}.")
        base = PRESETS[preset]
    if config_path is None:
        return base
    return load_config(config_path, base=base)


def read_input(path: Path | None) -> str:
    if path is None or str(path) == "-":
        return sys.stdin.read()
    return Path(path).read_text(encoding="utf-8")


def read_page(path: Path | None) -> tuple[str, bool]:
    """Read page code, which has to end with a newline. Also tell whether one was added."""
    code = read_input(path)
    if code.endswith("\n"):
        return code, False
    return code + "\n", True


def write_page(code: str, path: Path | None, added_newline: bool = False) -> None:
    if added_newline and code.endswith("\n"):
        code = code[:-1]
    write_output(code, path)


def write_output(text: str, path: Path | None) -> None:
    if path is None or str(path) == "-":
        sys.stdout.write(text)
        return
    Path(path).write_text(text, encoding="utf-8")
    logger.info("wrote %s", path)


def _print_json(value) -> None:
    print(json.dumps(value, indent=2, ensure_ascii=False))


def run_transform(
    input_path: Path | None,
    output_path: Path | None = None,
    config: WikitextConfig | None = None,
    **request_options,
) -> int:
    request = TransformRequest(text=read_input(input_path), **request_options)
    write_output(transform(request, config), output_path)
    return 0


def run_locate(
    page_path: Path,
    comment_data: CommentData,
    config: WikitextConfig | None = None,
) -> int:
    page_code, _ = read_page(page_path)
    result = locate(page_code, comment_data, config)
    if isinstance(result, LocateFailure):
        _print_json({"located": False, **result.to_dict()})
        return 1
    _print_json({"located": True, **result.to_dict()})
    return 0


def run_reply(
    page_path: Path,
    comment_data: CommentData,
    text: str,
    output_path: Path | None = None,
    config: WikitextConfig | None = None,
    **request_options,
) -> int:
    page_code, added_newline = read_page(page_path)
    source = locate_or_raise(page_code, comment_data, config)
    new_code, _ = source.modify_context(
        "reply",
        page_code,
        lambda: transform(source.transform_request(text, "reply", **request_options), config),
    )
    write_page(new_code, output_path if output_path is not None else page_path, added_newline)
    return 0


def run_edit(
    page_path: Path,
    comment_data: CommentData,
    text: str | None = None,
    output_path: Path | None = None,
    config: WikitextConfig | None = None,
    delete: bool = False,
    **request_options,
) -> int:
    page_code, added_newline = read_page(page_path)
    source = locate_or_raise(page_code, comment_data, config)
    if delete:
        new_code, _ = source.modify_context("edit", page_code, delete=True)
    else:
        if text is None:
            text = source.to_input()
        headline = source.headline_code if comment_data.is_opening_section else None
        request = source.transform_request(text, "edit", headline=headline, **request_options)
        new_code, _ = source.modify_context("edit", page_code, transform(request, config))
    write_page(new_code, output_path if output_path is not None else page_path, added_newline)
    return 0
