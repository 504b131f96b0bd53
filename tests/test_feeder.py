"""
Test Dictionary Feeder
======================

Protocollo bulk + per documento, sessioni isolate, lookup pigro delle label.
"""

import threading
from unittest.mock import MagicMock

import pytest

from lkbgaz.exceptions import QueryError
from lkbgaz.feeder import (
    DictionaryFeeder,
    FeedDictionaryFeeder,
    LabelLookupFeeder,
    LabelLookupSession,
    LocalFeedSession,
    NullDictionaryFeeder,
    SessionDictionaryFeeder,
    sparql_literal,
)
from lkbgaz.feeds import FeedResolver
from lkbgaz.models import Document, EntityRecord, SequenceLexemeWindow


class EchoSession(LocalFeedSession):
    """Sessione che restituisce un'entità per ogni primo lessema della finestra."""

    def __init__(self, tag):
        self.tag = tag
        self.closed = 0

    def on_checkpoint(self, window):
        lexeme = window.get_lexeme(0)
        return [EntityRecord(f"http://ex/{self.tag}/{lexeme}", "http://ex/Local", lexeme)]

    def close(self):
        self.closed += 1


class EchoFeeder(SessionDictionaryFeeder):

    def __init__(self):
        super().__init__()
        self.sessions = []

    def open_session(self, document):
        session = EchoSession(document.name)
        self.sessions.append(session)
        return session


class DisabledFeeder(SessionDictionaryFeeder):

    def open_session(self, document):
        return None


class TestNullDictionaryFeeder:
    """Feeder vuoto."""

    def test_is_a_feeder(self):
        assert isinstance(NullDictionaryFeeder(), DictionaryFeeder)

    def test_no_bulk_content(self, listener):
        feeder = NullDictionaryFeeder()
        feeder.init({})
        feeder.feed_all(listener)

        assert listener.entities == []

    def test_local_feeding_disabled(self, listener):
        feeder = NullDictionaryFeeder()
        doc = Document("Sofia")

        assert feeder.local_feed_init(doc) is False
        feeder.local_feed_needed(doc, SequenceLexemeWindow(["Sofia"]), listener)
        feeder.local_feed_end(doc)
        assert listener.entities == []


class TestFeedDictionaryFeeder:
    """Vocabolario fisso da un feed risolto."""

    def test_feed_all_pushes_local_repository(self, dictionary_dir, listener):
        feeder = FeedDictionaryFeeder(FeedResolver(service_provider=lambda: None))
        feeder.init({"dictionary_path": str(dictionary_dir)})

        feeder.feed_all(listener)

        assert len(listener.entities) == 4

    def test_without_path_is_noop(self, listener):
        feeder = FeedDictionaryFeeder(FeedResolver(service_provider=lambda: None))
        feeder.init({})

        feeder.feed_all(listener)

        assert listener.entities == []

    def test_unavailable_source_raises(self, empty_dictionary_dir, listener):
        feeder = FeedDictionaryFeeder(FeedResolver(service_provider=lambda: None))
        feeder.init({"dictionary_path": str(empty_dictionary_dir)})

        with pytest.raises(QueryError, match="config.ttl"):
            feeder.feed_all(listener)


class TestSessionDictionaryFeeder:
    """Ciclo per documento."""

    def test_empty_window_adds_nothing(self, listener):
        feeder = EchoFeeder()
        doc = Document("", name="empty")
        feeder.local_feed_init(doc)

        feeder.local_feed_needed(doc, SequenceLexemeWindow([]), listener)

        assert listener.entities == []
        feeder.local_feed_end(doc)

    def test_records_forwarded_to_listener(self, listener):
        feeder = EchoFeeder()
        doc = Document("Sofia", name="d1")
        assert feeder.local_feed_init(doc) is True

        feeder.local_feed_needed(doc, SequenceLexemeWindow(["Sofia"]), listener)

        assert listener.entities == [("http://ex/d1/Sofia", "http://ex/Local", "Sofia")]
        feeder.local_feed_end(doc)

    def test_sessions_isolated_per_document(self, listener):
        """Le entità locali di un documento non compaiono nell'altro."""
        feeder = EchoFeeder()
        doc_a = Document("x", name="a")
        doc_b = Document("x", name="b")
        feeder.local_feed_init(doc_a)
        feeder.local_feed_init(doc_b)

        listener_b = type(listener)()
        feeder.local_feed_needed(doc_a, SequenceLexemeWindow(["Varna"]), listener)
        feeder.local_feed_needed(doc_b, SequenceLexemeWindow(["Varna"]), listener_b)

        assert listener.entities[0][0] == "http://ex/a/Varna"
        assert listener_b.entities[0][0] == "http://ex/b/Varna"
        assert feeder.active_sessions == 2

    def test_end_closes_session_once(self):
        feeder = EchoFeeder()
        doc = Document("x")
        feeder.local_feed_init(doc)

        feeder.local_feed_end(doc)
        feeder.local_feed_end(doc)

        assert feeder.sessions[0].closed == 1
        assert feeder.active_sessions == 0

    def test_checkpoint_without_init_raises(self, listener):
        with pytest.raises(RuntimeError, match="local_feed_init"):
            EchoFeeder().local_feed_needed(Document("x"), SequenceLexemeWindow(["x"]), listener)

    def test_reinit_closes_previous_session(self):
        feeder = EchoFeeder()
        doc = Document("x")
        feeder.local_feed_init(doc)
        feeder.local_feed_init(doc)

        assert feeder.sessions[0].closed == 1
        assert feeder.active_sessions == 1

    def test_open_session_none_disables_local_feeding(self):
        feeder = DisabledFeeder()
        assert feeder.local_feed_init(Document("x")) is False
        assert feeder.active_sessions == 0

    def test_concurrent_documents(self):
        feeder = EchoFeeder()
        docs = [Document("x", name=f"doc{i}") for i in range(20)]
        results = {}

        def process(doc):
            recorder = MagicMock()
            feeder.local_feed_init(doc)
            feeder.local_feed_needed(doc, SequenceLexemeWindow(["Sofia"]), recorder)
            feeder.local_feed_end(doc)
            results[doc.name] = recorder.add_entity.call_args[0][0]

        threads = [threading.Thread(target=process, args=(doc,)) for doc in docs]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert results == {doc.name: f"http://ex/{doc.name}/Sofia" for doc in docs}
        assert feeder.active_sessions == 0


class TestSparqlLiteral:
    """Test per sparql_literal()."""

    def test_plain(self):
        assert sparql_literal("Sofia") == '"Sofia"'

    def test_escapes_quotes_and_backslashes(self):
        assert sparql_literal('say "hi" \\o/') == '"say \\"hi\\" \\\\o/"'

    def test_escapes_newlines(self):
        assert sparql_literal("a\nb") == '"a\\nb"'


class TestLabelLookupSession:
    """Lookup delle frasi in testa alla finestra."""

    def test_queries_each_prefix_once(self, fake_connection_factory):
        conn = fake_connection_factory({})
        session = LabelLookupSession(conn, "SELECT * WHERE { FILTER(?l = %s) }", min_lexeme_length=1)

        session.on_checkpoint(SequenceLexemeWindow(["New", "York"]))
        session.on_checkpoint(SequenceLexemeWindow(["New", "York"]))

        assert conn.queries == [
            'SELECT * WHERE { FILTER(?l = "New") }',
            'SELECT * WHERE { FILTER(?l = "New York") }',
        ]

    def test_short_phrases_skipped(self, fake_connection_factory):
        conn = fake_connection_factory({})
        session = LabelLookupSession(conn, "%s", min_lexeme_length=3)

        session.on_checkpoint(SequenceLexemeWindow(["a", "b"]))

        assert conn.queries == ['"a b"']

    def test_max_phrase_length(self, fake_connection_factory):
        conn = fake_connection_factory({})
        session = LabelLookupSession(conn, "%s", min_lexeme_length=1, max_phrase_length=1)

        session.on_checkpoint(SequenceLexemeWindow(["one", "two", "three"]))

        assert conn.queries == ['"one"']

    def test_rows_become_records(self, fake_connection_factory):
        conn = fake_connection_factory({'"Sofia"': [
            {"inst": "http://ex/Sofia", "cls": "http://ex/City", "label": "Sofia"},
            {"inst": "http://ex/only-two", "cls": "http://ex/City"},
            {"inst": "http://ex/untyped", "cls": None, "label": "Sofia"},
        ]})
        session = LabelLookupSession(conn, "%s")

        records = session.on_checkpoint(SequenceLexemeWindow(["Sofia"]))

        assert records == [EntityRecord("http://ex/Sofia", "http://ex/City", "Sofia")]

    def test_query_error_logged_not_raised(self, fake_connection_factory):
        conn = fake_connection_factory({}, default=QueryError("remote down"))
        session = LabelLookupSession(conn, "%s")

        assert session.on_checkpoint(SequenceLexemeWindow(["Sofia"])) == []

    def test_close_releases_connection(self, fake_connection_factory):
        conn = fake_connection_factory({})
        LabelLookupSession(conn, "%s").close()
        assert conn.closed


class TestLabelLookupFeeder:
    """Feeder pigro su repository locale o remoto."""

    def test_requires_repository_options(self):
        with pytest.raises(ValueError):
            LabelLookupFeeder().init({})

    def test_label_query_needs_single_placeholder(self, dictionary_dir):
        with pytest.raises(ValueError, match="%s"):
            LabelLookupFeeder().init({
                "config_url": str(dictionary_dir / "config.ttl"),
                "label_query": "SELECT * WHERE { ?s ?p ?o }",
            })

    def test_server_options_select_http_repository(self):
        feeder = LabelLookupFeeder()
        feeder.init({"server": "http://kb", "repository_id": "geo", "max_phrase_length": "3"})

        assert feeder.repository.endpoint == "http://kb/repositories/geo"
        assert feeder.max_phrase_length == 3

    def test_open_session_before_init_raises(self):
        with pytest.raises(RuntimeError):
            LabelLookupFeeder().local_feed_init(Document("x"))

    def test_resolves_labels_from_local_repository(self, dictionary_dir, listener):
        feeder = LabelLookupFeeder()
        feeder.init({"config_url": str(dictionary_dir / "config.ttl")})
        doc = Document("visit sofia")

        assert feeder.local_feed_init(doc)
        feeder.local_feed_needed(doc, SequenceLexemeWindow(["sofia"]), listener)
        feeder.local_feed_end(doc)

        assert listener.entities == [("http://example.org/Sofia", "http://example.org/City", "Sofia")]

    def test_bulk_feed_is_empty(self, dictionary_dir, listener):
        feeder = LabelLookupFeeder()
        feeder.init({"config_url": str(dictionary_dir / "config.ttl")})

        feeder.feed_all(listener)

        assert listener.entities == []
