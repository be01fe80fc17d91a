"""Sample IR modules shipped with the package."""

from __future__ import annotations

from importlib import resources


def get_sample(name: str) -> bytes:
    """Return the bytes of the sample ``<name>.ll``."""
    return resources.files(__package__).joinpath(f"{name}.ll").read_bytes()


def sample_names() -> list[str]:
    return sorted(
        entry.name[:-3]
        for entry in resources.files(__package__).iterdir()
        if entry.name.endswith(".ll")
    )
