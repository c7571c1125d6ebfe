"""Pick which repository files get sent to the model.

Structural files are build/dependency manifests used to infer the project's
architecture. Code files are source files reviewed one by one; only the
first MAX_CODE_FILES after ranking are kept to bound API usage.
"""

MAX_CODE_FILES = 5

STRUCTURAL_FILES = (
    "package.json", "tsconfig.json", "vite.config.ts", "webpack.config.js",
    "pom.xml", "build.gradle", "pyproject.toml", "requirements.txt",
    "composer.json", "Gemfile", "go.mod", "Cargo.toml", ".eslintrc.json",
)

# Common entry points, reviewed first and in this order.
CODE_FILE_PRIORITY = (
    "src/main.ts", "src/main.js", "src/index.ts", "src/index.js",
    "src/App.tsx", "src/App.jsx", "src/app.py", "src/main.py",
    "src/server.js", "src/server.ts", "lib/main.dart",
)

CODE_EXTENSIONS = (
    ".js", ".ts", ".jsx", ".tsx", ".py", ".java", ".go", ".rs", ".rb",
    ".php", ".html", ".css",
)

NON_CODE_DIRS = (
    "node_modules", "dist", "build", "docs", "test", "tests", "assets",
    "public", ".github", ".vscode",
)


def is_structural_file(path):
    return path in STRUCTURAL_FILES


def in_excluded_dir(path):
    """True if any excluded directory appears at the top level or nested."""
    for d in NON_CODE_DIRS:
        if path.startswith(f"{d}/") or f"/{d}/" in path:
            return True
    return False


def is_code_file(path):
    if in_excluded_dir(path):
        return False
    return path.endswith(CODE_EXTENSIONS)


def _rank_key(path):
    if path in CODE_FILE_PRIORITY:
        return (0, CODE_FILE_PRIORITY.index(path), "")
    return (1, 0, path)


def rank_code_files(paths):
    """Priority entry points first (in priority order), then the rest alphabetically."""
    return sorted(paths, key=_rank_key)


def select_files(paths):
    """Split repository paths into (structural, code) path lists.

    The lists are disjoint and come out in a fixed order whatever the input
    order: structural paths follow STRUCTURAL_FILES and are never truncated,
    code paths are ranked and cut to MAX_CODE_FILES.
    """
    paths = set(paths)
    structural = sorted((p for p in paths if is_structural_file(p)), key=STRUCTURAL_FILES.index)
    code = rank_code_files(p for p in paths if is_code_file(p) and not is_structural_file(p))
    return structural, code[:MAX_CODE_FILES]
