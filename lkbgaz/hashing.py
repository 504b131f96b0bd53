"""
Settings Hash
=============

Fingerprint di validità della cache di un dizionario.

Il fingerprint e' calcolato sul contenuto normalizzato della configurazione
(config.ttl) e sul testo della query: ogni sequenza di whitespace e' ridotta
a un singolo spazio, così una riformattazione (Turtle re-indentato, SPARQL
andato a capo) non invalida una cache costosa, mentre una modifica
semantica la invalida.

Se la configurazione non e' leggibile si usa solo la query normalizzata
(modalità degradata, non un errore).

Esempio:
    from lkbgaz.hashing import fingerprint

    fp = fingerprint(Path("dict/config.ttl"), query_text)
"""

import hashlib
import logging
import re

from lkbgaz.utils import Resource, resource_path

logger = logging.getLogger(__name__)

_MULTI_WS = re.compile(r"\s+")


def strip_multi_ws(text: str) -> str:
    """Riduce ogni sequenza massimale di whitespace a un singolo spazio."""
    return _MULTI_WS.sub(" ", text)


def _stable_hash(text: str) -> int:
    # Stabile tra processi, a differenza di hash()
    digest = hashlib.md5(text.encode("utf-8", errors="surrogateescape")).digest()
    return int.from_bytes(digest[:8], "big")


class SettingsHashBuilder:
    """
    Calcola il fingerprint (int) di configurazione + query.

    Example:
        >>> builder = SettingsHashBuilder()
        >>> builder.get_hash("missing/config.ttl", "SELECT  *") == builder.get_hash("missing/config.ttl", "SELECT *")
        True
    """

    def get_hash(self, config_resource: Resource, query: str) -> int:
        query = strip_multi_ws(query)
        try:
            raw = resource_path(config_resource).read_bytes()
        except (OSError, ValueError) as e:
            logger.debug(f"Config {config_resource} non leggibile, hash sulla sola query: {e}")
            return _stable_hash(query)
        # Byte non UTF-8 conservati: ogni modifica cambia il fingerprint
        config_string = strip_multi_ws(raw.decode("utf-8", errors="surrogateescape"))
        return _stable_hash(query + ";" + config_string)


def fingerprint(config_resource: Resource, query: str) -> int:
    """Scorciatoia per SettingsHashBuilder().get_hash()."""
    return SettingsHashBuilder().get_hash(config_resource, query)
