"""
Test Settings Hash
==================

Fingerprint di config + query: invarianza al whitespace, determinismo,
fallback sulla sola query.
"""

import pytest

from lkbgaz.hashing import SettingsHashBuilder, fingerprint, strip_multi_ws
from lkbgaz.utils import file_url


class TestStripMultiWs:
    """Test per strip_multi_ws()."""

    def test_collapses_runs(self):
        assert strip_multi_ws("a  b\t\tc\n\nd") == "a b c d"

    def test_does_not_trim(self):
        """Il whitespace ai bordi viene ridotto, non rimosso."""
        assert strip_multi_ws("   a   ") == " a "

    def test_single_spaces_unchanged(self):
        assert strip_multi_ws("SELECT ?s WHERE") == "SELECT ?s WHERE"


class TestFingerprint:
    """Test per fingerprint()."""

    def test_deterministic(self, dictionary_dir):
        config = dictionary_dir / "config.ttl"
        query = (dictionary_dir / "query.txt").read_text()

        assert fingerprint(config, query) == fingerprint(config, query)
        assert isinstance(fingerprint(config, query), int)

    def test_query_whitespace_invariance(self, dictionary_dir):
        config = dictionary_dir / "config.ttl"
        compact = "SELECT ?inst ?cls ?label WHERE { ?inst a ?cls . }"
        reformatted = "SELECT  ?inst ?cls ?label\nWHERE {\n\t?inst a ?cls .\n}"
        spaced = "SELECT   ?inst  ?cls ?label  WHERE {   ?inst a ?cls .  }"

        assert fingerprint(config, compact) == fingerprint(config, reformatted)
        assert fingerprint(config, compact) == fingerprint(config, spaced)

    def test_config_whitespace_invariance(self, tmp_path):
        a = tmp_path / "a.ttl"
        b = tmp_path / "b.ttl"
        a.write_text('<http://ex/s> <http://ex/p> "o" .\n<http://ex/s2> <http://ex/p> "o2" .')
        b.write_text('<http://ex/s>    <http://ex/p>\t"o" .\n\n\n<http://ex/s2>  <http://ex/p> "o2" .')

        assert fingerprint(a, "SELECT *") == fingerprint(b, "SELECT *")

    def test_semantic_config_change_changes_hash(self, tmp_path):
        a = tmp_path / "a.ttl"
        b = tmp_path / "b.ttl"
        a.write_text('<http://ex/s> <http://ex/p> "o" .')
        b.write_text('<http://ex/s> <http://ex/p> "other" .')

        assert fingerprint(a, "SELECT *") != fingerprint(b, "SELECT *")

    def test_semantic_query_change_changes_hash(self, dictionary_dir):
        config = dictionary_dir / "config.ttl"
        assert fingerprint(config, "SELECT ?a WHERE {}") != fingerprint(config, "SELECT ?b WHERE {}")

    def test_accepts_file_url(self, dictionary_dir):
        config = dictionary_dir / "config.ttl"
        query = "SELECT *"
        assert fingerprint(file_url(config), query) == fingerprint(config, query)
        assert fingerprint(str(config), query) == fingerprint(config, query)

    def test_missing_config_falls_back_to_query(self, tmp_path):
        """Config illeggibile: hash sulla sola query, nessuna eccezione."""
        missing = tmp_path / "missing.ttl"
        other_missing = tmp_path / "other.ttl"

        fp = fingerprint(missing, "SELECT  ?x")

        assert fp == fingerprint(other_missing, "SELECT ?x")

    def test_fallback_differs_from_full_hash(self, dictionary_dir, tmp_path):
        query = "SELECT ?x"
        assert fingerprint(dictionary_dir / "config.ttl", query) != fingerprint(tmp_path / "nope.ttl", query)

    def test_non_utf8_config_edit_changes_hash(self, tmp_path):
        """Config leggibile ma non UTF-8: nessun fallback sulla sola query."""
        config = tmp_path / "config.ttl"
        config.write_bytes('<http://ex/s> <http://ex/p> "caf\xe9 x" .'.encode("latin-1"))
        before = fingerprint(config, "SELECT *")

        config.write_bytes('<http://ex/s> <http://ex/p> "caf\xe9 y" .'.encode("latin-1"))
        after = fingerprint(config, "SELECT *")

        assert before != after
        assert before != fingerprint(tmp_path / "missing.ttl", "SELECT *")

    def test_non_utf8_config_whitespace_invariance(self, tmp_path):
        a = tmp_path / "a.ttl"
        b = tmp_path / "b.ttl"
        a.write_bytes('<http://ex/s> <http://ex/p> "caf\xe9" .'.encode("latin-1"))
        b.write_bytes('<http://ex/s>\t\t<http://ex/p>   "caf\xe9" .'.encode("latin-1"))

        assert fingerprint(a, "SELECT *") == fingerprint(b, "SELECT *")

    def test_non_file_url_falls_back(self):
        builder = SettingsHashBuilder()
        assert builder.get_hash("http://example.org/config.ttl", "q") == builder.get_hash("missing.ttl", "q")

    @pytest.mark.parametrize("query", ["", " ", "SELECT * WHERE { ?s ?p ?o }"])
    def test_builder_matches_function(self, dictionary_dir, query):
        config = dictionary_dir / "config.ttl"
        assert SettingsHashBuilder().get_hash(config, query) == fingerprint(config, query)
