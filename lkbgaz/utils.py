"""
Utility per risorse su filesystem.

Le risorse di configurazione possono arrivare come Path, stringa di path o
URL file: (come le produce Path.as_uri()).
"""

from pathlib import Path
from typing import Union
from urllib.parse import unquote, urlparse
from urllib.request import url2pathname

Resource = Union[str, Path]


def resource_path(resource: Resource) -> Path:
    """
    Converte una risorsa in Path.

    Raises:
        ValueError: Se la risorsa e' un URL non file: (es. http:)
    """
    if isinstance(resource, Path):
        return resource
    parsed = urlparse(resource)
    if parsed.scheme == "file":
        return Path(url2pathname(unquote(parsed.path)))
    # Lettera di drive Windows ("C:\...") o path semplice
    if len(parsed.scheme) <= 1:
        return Path(resource)
    raise ValueError(f"Not a file resource: {resource}")


def file_url(path: Resource) -> str:
    """URL file: assoluto di un path."""
    return resource_path(path).absolute().as_uri()
