"""Tests for the game log store."""

import threading
from pathlib import Path

import pytest
from src.hanabi.errors import ConcurrentModification, InvalidAction, InvalidSetup, NotFound
from src.hanabi.game import deal_initial_state, get_status
from src.hanabi.models import DiscardAction, HintColorAction, HintRankAction
from src.hanabi.store import FileGameStore, GameStore, InMemoryGameStore


@pytest.fixture(params=["memory", "file"])
def store(request, tmp_path: Path) -> GameStore:
    if request.param == "memory":
        return InMemoryGameStore()
    return FileGameStore(tmp_path / "data")


class TestCreateAndGet:
    """Tests for creating and loading games."""

    def test_create_persists_initial_state(self, store):
        game_id = store.create_game(["Alice", "Bob"], seed=12)
        record = store.get_game(game_id)

        assert record.game_id == game_id
        assert record.initial_state == deal_initial_state(["Alice", "Bob"], seed=12)
        assert record.actions == []
        assert store.list_games() == [game_id]

    def test_invalid_setup_creates_nothing(self, store):
        with pytest.raises(InvalidSetup):
            store.create_game(["Alice"])
        assert store.list_games() == []

    def test_unknown_game(self, store):
        with pytest.raises(NotFound):
            store.get_game("nope")


class TestAppend:
    """Tests for validated appends."""

    def test_valid_action_appended(self, store):
        game_id = store.create_game(["Alice", "Bob"], seed=1)
        action_id = store.append_action(game_id, HintColorAction(target="Bob", color="red"))

        record = store.get_game(game_id)
        assert [a.action_id for a in record.actions] == [action_id]
        assert record.actions[0].action == HintColorAction(target="Bob", color="red")

        frames = store.replay(game_id)
        assert frames[-1].state.players[0].name == "Bob"
        assert frames[-1].state.n_hints == 7

    def test_raw_action_appended(self, store):
        game_id = store.create_game(["Alice", "Bob"], seed=1)
        store.append_action(game_id, {"action_type": "discard", "slot": "left"})

        assert store.get_game(game_id).actions[0].action == DiscardAction(slot="left")

    def test_invalid_action_rejected_log_untouched(self, store):
        game_id = store.create_game(["Alice", "Bob"], seed=1)
        store.append_action(game_id, HintColorAction(target="Bob", color="red"))

        # Bob may not hint himself
        with pytest.raises(InvalidAction):
            store.append_action(game_id, HintRankAction(target="Bob", rank=1))
        with pytest.raises(InvalidAction):
            store.append_action(game_id, {"action_type": "bogus"})

        assert len(store.get_game(game_id).actions) == 1

    def test_validation_uses_replayed_state(self, store):
        """Hint tokens run out after eight hints in a row."""
        game_id = store.create_game(["Alice", "Bob", "Cathy"], seed=3)
        targets = ["Bob", "Cathy", "Alice"]
        for i in range(8):
            store.append_action(game_id, HintRankAction(target=targets[i % 3], rank=1))

        with pytest.raises(InvalidAction):
            store.append_action(game_id, HintRankAction(target="Alice", rank=1))

        assert store.replay(game_id)[-1].state.n_hints == 0

    def test_append_to_unknown_game(self, store):
        with pytest.raises(NotFound):
            store.append_action("missing", DiscardAction(slot="left"))

    def test_game_plays_to_completion(self, store):
        game_id = store.create_game(["Alice", "Bob"], seed=2)
        while get_status(store.replay(game_id)[-1].state).status == "playing":
            store.append_action(game_id, DiscardAction(slot="left"))

        final = store.replay(game_id)[-1].state
        assert final.deck == []
        assert get_status(final).status == "over"
        # 40 cards in the deck, then one extra turn each
        assert len(store.get_game(game_id).actions) == 40 + 2


class TestUndo:
    """Tests for removing the last action."""

    def test_undo_last(self, store):
        game_id = store.create_game(["Alice", "Bob"], seed=1)
        first = store.append_action(game_id, DiscardAction(slot="left"))
        second = store.append_action(game_id, DiscardAction(slot="left"))

        store.remove_last_action(game_id, second)

        assert [a.action_id for a in store.get_game(game_id).actions] == [first]

    def test_undo_non_tail_rejected(self, store):
        game_id = store.create_game(["Alice", "Bob"], seed=1)
        first = store.append_action(game_id, DiscardAction(slot="left"))
        store.append_action(game_id, DiscardAction(slot="left"))

        with pytest.raises(ConcurrentModification):
            store.remove_last_action(game_id, first)
        assert len(store.get_game(game_id).actions) == 2

    def test_undo_empty_log(self, store):
        game_id = store.create_game(["Alice", "Bob"], seed=1)
        with pytest.raises(NotFound):
            store.remove_last_action(game_id, "anything")

    def test_action_accepted_again_after_undo(self, store):
        game_id = store.create_game(["Alice", "Bob"], seed=1)
        action_id = store.append_action(game_id, HintColorAction(target="Bob", color="red"))
        store.remove_last_action(game_id, action_id)

        # Alice is active again
        store.append_action(game_id, HintColorAction(target="Bob", color="blue"))
        assert store.replay(game_id)[-1].state.players[0].name == "Bob"


class TestNotes:
    """Tests for per-viewer frame notes."""

    def test_upsert(self, store):
        game_id = store.create_game(["Alice", "Bob"], seed=1)
        store.set_note(game_id, "Alice", 0, "Bob has a red 1")
        store.set_note(game_id, "Alice", 3, "save the 5")
        store.set_note(game_id, "Alice", 0, "Bob has two red 1s")

        assert store.get_notes(game_id, "Alice") == {0: "Bob has two red 1s", 3: "save the 5"}
        assert store.get_notes(game_id, "Bob") == {}

    def test_negative_frame(self, store):
        game_id = store.create_game(["Alice", "Bob"], seed=1)
        with pytest.raises(ValueError):
            store.set_note(game_id, "Alice", -1, "x")

    def test_unknown_game(self, store):
        with pytest.raises(NotFound):
            store.set_note("missing", "Alice", 0, "x")
        with pytest.raises(NotFound):
            store.get_notes("missing", "Alice")


class TestFileStore:
    """Tests specific to the JSON file backend."""

    def test_survives_new_instance(self, tmp_path):
        first = FileGameStore(tmp_path)
        game_id = first.create_game(["Alice", "Bob", "Cathy"], seed=5)
        action_id = first.append_action(game_id, HintColorAction(target="Cathy", color="white"))
        first.set_note(game_id, "Bob", 1, "white hint on Cathy")

        second = FileGameStore(tmp_path)
        record = second.get_game(game_id)
        assert record.actions[0].action_id == action_id
        assert record.replay() == first.replay(game_id)
        assert second.get_notes(game_id, "Bob") == {1: "white hint on Cathy"}
        assert (tmp_path / "games" / f"{game_id}.json").exists()

    def test_path_like_ids_not_found(self, tmp_path):
        store = FileGameStore(tmp_path)
        with pytest.raises(NotFound):
            store.get_game("../etc")

    def test_empty_directory_lists_nothing(self, tmp_path):
        assert FileGameStore(tmp_path / "missing").list_games() == []

    def test_notes_readable_while_written(self, tmp_path):
        """Readers never see a partially written notes file."""
        writer = FileGameStore(tmp_path)
        game_id = writer.create_game(["Alice", "Bob"], seed=1)
        reader = FileGameStore(tmp_path)
        done = threading.Event()
        errors: list[Exception] = []

        def write_notes():
            try:
                for frame in range(100):
                    writer.set_note(game_id, "Alice", frame, "x" * 20_000)
            finally:
                done.set()

        def read_notes():
            while not done.is_set():
                try:
                    reader.get_notes(game_id, "Alice")
                except Exception as exc:
                    errors.append(exc)

        threads = [threading.Thread(target=write_notes), threading.Thread(target=read_notes)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert errors == []
        assert len(reader.get_notes(game_id, "Alice")) == 100
        assert not list((tmp_path / "notes").glob("*.tmp"))


class TestConcurrency:
    """Appends and undos from several threads against one store."""

    def test_racing_appends_all_land(self, store):
        game_id = store.create_game(["Alice", "Bob"], seed=7)
        barrier = threading.Barrier(4)
        accepted: list[str] = []

        def append_discards():
            barrier.wait()
            for _ in range(5):
                accepted.append(store.append_action(game_id, DiscardAction(slot="left")))

        threads = [threading.Thread(target=append_discards) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        record = store.get_game(game_id)
        assert len(accepted) == 20
        assert sorted(a.action_id for a in record.actions) == sorted(accepted)
        frames = record.replay()
        assert len(frames) == 21
        assert len(frames[-1].state.deck) == 40 - 20

    def test_racing_hints_respect_token_count(self, store):
        """Only eight hints fit; the rest are rejected, never double-spent."""
        game_id = store.create_game(["Alice", "Bob", "Cathy"], seed=3)
        barrier = threading.Barrier(4)
        accepted: list[str] = []
        rejected: list[InvalidAction] = []

        def hint_everyone():
            barrier.wait()
            for _ in range(4):
                active = store.replay(game_id)[-1].state.players[0].name
                target = "Cathy" if active != "Cathy" else "Alice"
                try:
                    accepted.append(store.append_action(game_id, HintRankAction(target=target, rank=1)))
                except InvalidAction as exc:
                    rejected.append(exc)

        threads = [threading.Thread(target=hint_everyone) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        record = store.get_game(game_id)
        assert sorted(a.action_id for a in record.actions) == sorted(accepted)
        assert len(record.actions) == len(accepted) <= 8
        assert len(accepted) + len(rejected) == 16
        assert record.replay()[-1].state.n_hints == 8 - len(accepted)

    def test_racing_undo_of_same_action(self, store):
        game_id = store.create_game(["Alice", "Bob"], seed=1)
        first = store.append_action(game_id, DiscardAction(slot="left"))
        second = store.append_action(game_id, DiscardAction(slot="left"))
        barrier = threading.Barrier(2)
        outcomes: list[str] = []

        def undo():
            barrier.wait()
            try:
                store.remove_last_action(game_id, second)
                outcomes.append("removed")
            except ConcurrentModification:
                outcomes.append("conflict")

        threads = [threading.Thread(target=undo) for _ in range(2)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(outcomes) == ["conflict", "removed"]
        assert [a.action_id for a in store.get_game(game_id).actions] == [first]
