from pathlib import Path


def find_project_root(start: Path, root_marker: str = "pyproject.toml") -> Path:
    """Walk up from start until a directory holding root_marker is found."""
    for parent in [start, *start.parents]:
        if (parent / root_marker).exists():
            return parent
    # Installed outside a checkout, fall back to the working directory
    return Path.cwd()


project_root = find_project_root(Path(__file__).parent)
