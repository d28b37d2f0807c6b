"""Sample knowledge-base files and backends shared by the tests."""

from __future__ import annotations

import json
from pathlib import Path

from kbmcp.settings import AppSettings, CriticalDocument, WorkflowSettings
from kbmcp.sources import ConfigPaths
from tests.fakes import FakeBackend, FakeFile, folder

BRAND_ID = "brand-positioning"
WRITING_ID = "writing-guidelines"
CLAIMS_ID = "quick-claims"
CLINICAL_ID = "clinical-study"
BLOG_ID = "blog-post"
ROOT_ID = "kb-root"

KB_MAP = """# Knowledge Base Map

Orientation notes for assistants.

## Brand & Marketing
- **Brand Positioning** (id: `brand-positioning`, Google Doc)
- **Writing Guidelines** (id: `writing-guidelines`, Google Doc)
- **Quick Claims Reference** (id: `quick-claims`, Google Doc)

## Clinical & Research
- **Clinical Study** (id: `clinical-study`, PDF)

## Topic Articles & Blog Content
- **Blog Post** (id: `blog-post`)

## Finance
- **Budget** (id: `budget-2024`)
"""

KB_GUIDE = """# Knowledge Base Guide

## Global
Never promise a cure.

## Clinical & Research
Quote study sample sizes exactly.

## Brand & Marketing
Use sentence case in headlines.

## Retired Section
Old advice.
"""

CORE_DOCS = {
    "coreDocs": [
        {
            "id": BRAND_ID,
            "name": "Brand Positioning",
            "description": "Who we are",
            "category": "Brand",
        },
        {
            "id": CLINICAL_ID,
            "name": "Clinical Study",
            "description": "Evidence base",
            "category": "Clinical",
        },
    ]
}


def write_config(
    directory: Path,
    *,
    kb_map: str | None = KB_MAP,
    kb_guide: str | None = KB_GUIDE,
    core_docs: object | None = CORE_DOCS,
) -> ConfigPaths:
    directory.mkdir(parents=True, exist_ok=True)
    if kb_map is not None:
        (directory / "kb-map.md").write_text(kb_map, encoding="utf-8")
    if kb_guide is not None:
        (directory / "kb-guide.md").write_text(kb_guide, encoding="utf-8")
    if core_docs is not None:
        (directory / "core-docs.json").write_text(json.dumps(core_docs), encoding="utf-8")
    return ConfigPaths(config_dir=directory)


def sample_backend() -> FakeBackend:
    return FakeBackend.with_files(
        [
            folder(ROOT_ID, "Knowledge Base"),
            folder("brand-folder", "Brand", parent=ROOT_ID),
            FakeFile(BRAND_ID, "Brand Positioning", "We help people move.", parent="brand-folder"),
            FakeFile(WRITING_ID, "Writing Guidelines", "Write plainly.", parent="brand-folder"),
            FakeFile(CLAIMS_ID, "Quick Claims Reference", "Approved: relieves tension.", parent="brand-folder"),
            FakeFile(CLINICAL_ID, "Clinical Study", "n=42 participants.", parent=ROOT_ID, last_editor="Dr. Lee"),
            FakeFile(BLOG_ID, "Blog Post", "Hip flexor stretches.", parent=ROOT_ID),
            FakeFile("unlisted", "Loose Notes", "Nothing special.", parent=ROOT_ID),
        ]
    )


def sample_settings() -> AppSettings:
    return AppSettings(
        knowledge_base={"root_folder_id": ROOT_ID},
        workflows=WorkflowSettings(
            critical_documents=[
                CriticalDocument(id=BRAND_ID, name="Brand Positioning"),
                CriticalDocument(id=WRITING_ID, name="Writing Guidelines"),
                CriticalDocument(id=CLAIMS_ID, name="Quick Claims Reference"),
            ]
        ),
    )
