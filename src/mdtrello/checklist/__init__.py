"""Markdown checklist scanning."""

from mdtrello.checklist.models import GroupBy, HeadingContext, ScanOptions, WorkItem
from mdtrello.checklist.parser import (
    build_card_title,
    choose_list_name,
    clean_text,
    scan_document,
    scan_file,
)

__all__ = [
    "GroupBy",
    "HeadingContext",
    "ScanOptions",
    "WorkItem",
    "build_card_title",
    "choose_list_name",
    "clean_text",
    "scan_document",
    "scan_file",
]
