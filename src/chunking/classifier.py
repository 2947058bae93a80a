# src/chunking/classifier.py — v1
"""File classification by path: kind, language, and ignore rules."""

from __future__ import annotations

from pathlib import PurePosixPath

from repodoc.core.models import FileKind

_DOCUMENTATION_EXTENSIONS = (".md", ".txt", ".rst", ".adoc", ".wiki", ".org")
_CONFIG_EXTENSIONS = (".json", ".yaml", ".yml", ".env", ".toml", ".ini", ".xml", ".conf")

_LANGUAGES: dict[str, str] = {
    # JavaScript ecosystem
    ".ts": "TypeScript",
    ".tsx": "TypeScript React",
    ".js": "JavaScript",
    ".jsx": "JavaScript React",
    ".mjs": "JavaScript Module",
    ".cjs": "CommonJS",
    ".vue": "Vue",
    ".svelte": "Svelte",
    # Styling
    ".css": "CSS",
    ".scss": "SCSS",
    ".sass": "Sass",
    ".less": "Less",
    # Markup
    ".html": "HTML",
    ".htm": "HTML",
    ".xml": "XML",
    # Backend languages
    ".py": "Python",
    ".java": "Java",
    ".rb": "Ruby",
    ".php": "PHP",
    ".go": "Go",
    ".rs": "Rust",
    ".cs": "C#",
    ".cpp": "C++",
    ".c": "C",
    ".h": "C",
    ".swift": "Swift",
    ".kt": "Kotlin",
    ".scala": "Scala",
    ".ex": "Elixir",
    ".exs": "Elixir Script",
    # Shell scripting
    ".sh": "Shell",
    ".bash": "Bash",
    ".zsh": "Zsh",
    ".ps1": "PowerShell",
    # Templates
    ".ejs": "EJS",
    ".hbs": "Handlebars",
    ".j2": "Jinja",
    # Data formats
    ".json": "JSON",
    ".yaml": "YAML",
    ".yml": "YAML",
    ".toml": "TOML",
    ".csv": "CSV",
    ".sql": "SQL",
    # Documentation
    ".md": "Markdown",
    ".rst": "reStructuredText",
    ".adoc": "AsciiDoc",
    ".tex": "LaTeX",
}

# Suffix patterns start with "."; everything else matches anywhere in the path.
IGNORE_PATTERNS: tuple[str, ...] = (
    # Images
    ".jpg", ".jpeg", ".png", ".gif", ".svg", ".ico", ".webp", ".avif", ".bmp",
    ".tiff", ".psd",
    # Audio / video
    ".mp3", ".wav", ".ogg", ".m4a", ".aac", ".flac", ".mid", ".midi",
    ".mp4", ".avi", ".mov", ".wmv", ".mkv", ".webm", ".mpg", ".mpeg",
    # Fonts
    ".ttf", ".otf", ".woff", ".woff2", ".eot",
    # 3D / design
    ".obj", ".fbx", ".blend", ".stl", ".ai", ".sketch",
    # Lockfiles
    "package-lock.json", "yarn.lock", "pnpm-lock.yaml", "composer.lock",
    "gemfile.lock", "cargo.lock", "poetry.lock", "pipfile.lock", "uv.lock",
    # Compiled artifacts
    ".exe", ".dll", ".so", ".dylib", ".class", ".o", ".pyc", ".pyo", ".pyd",
    ".jar", ".war", ".min.js", ".min.css", ".map", ".pdb",
    # Archives
    ".zip", ".tar", ".gz", ".tgz", ".7z", ".rar", ".pdf",
    # Editors and VCS
    ".idea", ".vscode", ".sublime-workspace", ".sublime-project",
    ".git", ".svn", ".hg", ".gitignore", ".gitattributes",
    ".git/", ".svn/", ".hg/",
    # Temporary and cache files
    ".tmp", ".temp", ".cache", ".log", ".swp", ".ds_store", "thumbs.db",
    # Build and dependency directories
    "node_modules/", "vendor/", "dist/", "build/", "__pycache__/",
    ".pytest_cache/", ".mypy_cache/", ".venv/", ".next/", ".nuxt/",
    # Coverage
    "coverage/", ".nyc_output/", ".coverage", "junit.xml",
    # Local environment files
    ".env.local", ".env.development.local", ".env.test.local",
    ".env.production.local",
)


def determine_kind(path: str) -> FileKind:
    """Classify a path as documentation, config, or code."""
    lower = path.lower()
    if lower.endswith(_DOCUMENTATION_EXTENSIONS):
        return "documentation"
    if lower.endswith(_CONFIG_EXTENSIONS):
        return "config"
    return "code"


def determine_language(path: str) -> str | None:
    """Map a file extension to a language name; None when unknown."""
    suffix = PurePosixPath(path).suffix.lower()
    return _LANGUAGES.get(suffix)


def should_ignore(path: str) -> bool:
    """Return True for media, binaries, lockfiles, build output and VCS noise."""
    lower = path.lower()
    padded = f"/{lower}"
    for pattern in IGNORE_PATTERNS:
        if pattern.endswith("/"):
            if f"/{pattern}" in padded or padded.endswith(f"/{pattern[:-1]}"):
                return True
        elif pattern.startswith("."):
            if lower.endswith(pattern):
                return True
        elif pattern in lower:
            return True
    return False
