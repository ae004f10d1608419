"""Helpers shared by the test suite (factories, sign in, jobs, stubs)."""
from pathlib import Path

SUPPORT_DIR = Path(__file__).parent
FILES_DIR = SUPPORT_DIR / "files"
FIXTURES_DIR = SUPPORT_DIR.parent / "fixtures"

PDF_PATH = FILES_DIR / "test.pdf"
