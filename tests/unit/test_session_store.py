"""Unit tests for sessions and session stores."""

from servicebot.services.session import (
    InMemorySessionStore,
    Session,
    SqliteSessionStore,
    create_session_store,
)


class TestSession:
    def test_select_service_clears_per_service_state(self):
        session = Session(
            service=1,
            query={"prompt": "x"},
            context=[{"role": "user", "content": "hi"}],
            data={"url": "https://a.example"},
            settings={"voiceName": "nova"},
        )

        session.select_service(2)

        assert session.service == 2
        assert session.query == {} and session.context == [] and session.data == {}
        assert session.settings == {"voiceName": "nova"}

    def test_clear_keeps_service(self):
        session = Session(service=1, query={"prompt": "x"})
        session.clear()
        assert session.service == 1
        assert session.query == {}

    def test_copy_is_deep(self):
        session = Session(query={"a": "1"}, context=[{"role": "user", "content": "hi"}])
        clone = session.copy()
        clone.query["b"] = "2"
        clone.context[0]["content"] = "changed"

        assert session.query == {"a": "1"}
        assert session.context[0]["content"] == "hi"

    def test_from_dict_tolerates_missing_keys(self):
        session = Session.from_dict({"service": 3})
        assert session.service == 3
        assert session.settings == {}


class StoreContract:
    """Behaviour every store must have."""

    def make_store(self, tmp_path):
        raise NotImplementedError

    def test_lazy_creation(self, tmp_path):
        store = self.make_store(tmp_path)
        assert store.get_state("new").to_dict() == Session().to_dict()

    def test_round_trip(self, tmp_path):
        store = self.make_store(tmp_path)
        session = Session(service=2, query={"image": "https://cdn.example/a.png"}, settings={"autoSpeak": True})
        store.set_state("s1", session)

        loaded = store.get_state("s1")

        assert loaded.to_dict() == session.to_dict()

    def test_reads_do_not_alias_store(self, tmp_path):
        store = self.make_store(tmp_path)
        store.set_state("s1", Session(service=0))

        working = store.get_state("s1")
        working.query["text"] = "unsaved"

        assert store.get_state("s1").query == {}

    def test_sessions_isolated(self, tmp_path):
        store = self.make_store(tmp_path)
        store.set_state("a", Session(service=1))
        store.set_state("b", Session(service=2))

        assert store.get_state("a").service == 1
        assert store.get_state("b").service == 2

    def test_overwrite(self, tmp_path):
        store = self.make_store(tmp_path)
        store.set_state("s1", Session(service=1))
        store.set_state("s1", Session(service=4))
        assert store.get_state("s1").service == 4


class TestInMemorySessionStore(StoreContract):
    def make_store(self, tmp_path):
        return InMemorySessionStore()

    def test_session_ids(self, tmp_path):
        store = InMemorySessionStore()
        store.get_state("a")
        store.set_state("b", Session())
        assert sorted(store.session_ids()) == ["a", "b"]


class TestSqliteSessionStore(StoreContract):
    def make_store(self, tmp_path):
        return SqliteSessionStore(str(tmp_path / "sessions.db"))

    def test_persists_across_instances(self, tmp_path):
        path = str(tmp_path / "sessions.db")
        SqliteSessionStore(path).set_state("s1", Session(service=5, settings={"whisperLang": "fr"}))

        reopened = SqliteSessionStore(path)

        assert reopened.get_state("s1").settings == {"whisperLang": "fr"}
        assert reopened.session_ids() == ["s1"]

    def test_creates_parent_directory(self, tmp_path):
        SqliteSessionStore(str(tmp_path / "nested" / "dir" / "sessions.db"))
        assert (tmp_path / "nested" / "dir").is_dir()


class TestFactory:
    def test_memory(self):
        assert isinstance(create_session_store("memory"), InMemorySessionStore)

    def test_unknown_backend_falls_back(self):
        assert isinstance(create_session_store("redis"), InMemorySessionStore)

    def test_sqlite(self, tmp_path, monkeypatch):
        from servicebot.core.config import settings

        monkeypatch.setattr(settings.sessions, "path", tmp_path / "s.db")
        store = create_session_store("sqlite")
        assert isinstance(store, SqliteSessionStore)
        assert store.db_path == tmp_path / "s.db"
