"""
Check whether the editor's language server would index a given file.

The language server indexes the Python files selected by [tool.pyright]
include/exclude in pyproject.toml. When a test file gets no go-to-definition
or test lenses, run this to see whether it is part of the index at all.

Usage:
    uv run python -m scripts.debug_indexer --file test_memberships.py --path tests/
"""
import argparse
import fnmatch
import tomllib
from dataclasses import dataclass
from pathlib import Path


DEFAULT_EXCLUDES = ("**/node_modules", "**/__pycache__", "**/.*", ".venv", "venv")


@dataclass(frozen=True)
class IndexableUri:
    full_path: str


def _is_excluded(relative: str, patterns: tuple[str, ...]) -> bool:
    parts = relative.split("/")
    for pattern in patterns:
        bare = pattern.removeprefix("**/").removesuffix("/**")
        if any(fnmatch.fnmatchcase(part, bare) for part in parts[:-1]):
            return True
        if fnmatch.fnmatchcase(relative, pattern) or relative.startswith(bare + "/"):
            return True
    return False


class IndexerConfiguration:
    def __init__(self, root: Path | str = "."):
        self.root = Path(root).resolve()
        settings = {}
        pyproject = self.root / "pyproject.toml"
        if pyproject.exists():
            with open(pyproject, "rb") as f:
                settings = tomllib.load(f).get("tool", {}).get("pyright", {})
        self.include = tuple(settings.get("include", ["."]))
        self.exclude = DEFAULT_EXCLUDES + tuple(settings.get("exclude", []))

    def indexable_uris(self) -> list[IndexableUri]:
        seen = set()
        uris = []
        for include in self.include:
            base = (self.root / include).resolve()
            candidates = [base] if base.is_file() else sorted(base.rglob("*.py"))
            for path in candidates:
                relative = path.relative_to(self.root).as_posix()
                if path in seen or _is_excluded(relative, self.exclude):
                    continue
                seen.add(path)
                uris.append(IndexableUri(str(path)))
        return uris


def find_uri(uris: list[IndexableUri], suffix: str) -> IndexableUri | None:
    return next((uri for uri in uris if uri.full_path.endswith(suffix)), None)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--root", default=".", help="Project root containing pyproject.toml")
    parser.add_argument("--file", default="test_memberships.py", help="File name (suffix) to look for")
    parser.add_argument("--path", default="tests/", help="Path fragment to list when the file is missing")
    args = parser.parse_args(argv)

    uris = IndexerConfiguration(args.root).indexable_uris()
    result = find_uri(uris, args.file)

    if result:
        print(f"Found the file: {result.full_path}")
    else:
        print("File not found in the indexable URIs.")
        for uri in uris:
            if args.path in uri.full_path:
                print(uri.full_path)


if __name__ == "__main__":
    main()
