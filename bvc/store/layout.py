"""
Working copy layout for new repositories.

<target>/
  .bvc/{config,staging,commits,checkpoints}.json
  .bvcignore
  README.md   (init only)
"""

from pathlib import Path
from typing import Union

from ..core.errors import ConfigurationError
from ..core.models import RepoConfig
from .ignore import DEFAULT_IGNORE_TEMPLATE, IGNORE_FILE
from .repository import RepositoryStore

README_TEMPLATE = """# {name}

{description}

## Getting Started

This repository is managed with BVC - Blockchain Version Control.

### Commands

- `bvc status` - Check repository status
- `bvc add <files>` - Stage files for commit
- `bvc commit -m "message"` - Commit changes
- `bvc checkpoint -m "message"` - Anchor commits on the ledger
- `bvc log` - View commit history

### Repository Info

- **Created:** {created}
- **Ledger ID:** {repo_id}
"""


def render_readme(config: RepoConfig) -> str:
    return README_TEMPLATE.format(
        name=config.name,
        description=config.description or "A BVC (Blockchain Version Control) repository",
        created=config.created_at[:10],
        repo_id=config.repo_id or "Local only",
    )


def create_working_copy(target: Union[str, Path], config: RepoConfig, readme: bool = True) -> RepositoryStore:
    """
    Create a new repository directory.

    Raises:
        ConfigurationError: If target already exists
    """
    target = Path(target)
    if target.exists():
        raise ConfigurationError(
            f"Directory {target} already exists",
            remediation="Pick another name, or remove the existing directory.",
        )
    target.mkdir(parents=True)
    store = RepositoryStore.create(target, config)
    (target / IGNORE_FILE).write_text(DEFAULT_IGNORE_TEMPLATE, encoding="utf-8")
    if readme:
        (target / "README.md").write_text(render_readme(config), encoding="utf-8")
    return store
