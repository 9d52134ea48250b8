"""Tests for the RaffleLogic state machine."""

from spinapp.actions import Notify, SendToWinner, Winner
from spinapp.logic import Confirming, RaffleLogic, Spinning, Waiting
from spinapp.raffle_runner import RaffleRunner

from conftest import ADDR_A, ADDR_B, account_for, chat


def make_logic(interval: float = 5.0, prize: int = 10**30) -> RaffleLogic:
    logic = RaffleLogic(RaffleRunner(interval=interval, prize=prize))
    logic.start()
    return logic


def test_initial_state():
    logic = RaffleLogic()
    assert not logic.running
    assert logic.latest_messages() == []
    assert logic.participants() == []
    assert logic.winners() == []
    assert logic.current_win() is None


def test_stopped_tick_and_countdown_are_noops():
    logic = RaffleLogic(RaffleRunner(interval=5))
    logic.handle_chat_message(chat("a", ADDR_A))
    assert logic.tick(0.0, 0) == []
    assert logic.tick(100.0, 0) == []
    assert logic.countdown(100.0) == 0.0
    assert logic.current_win() is None


def test_message_without_address_is_only_buffered():
    logic = RaffleLogic()
    logic.handle_chat_message(chat("abc", "test message"))
    assert len(logic.latest_messages()) == 1
    assert logic.participants() == []


def test_register_viewer_from_message():
    logic = RaffleLogic()
    logic.handle_chat_message(chat("abc", f"My address is {ADDR_A} :-)"))
    [p] = logic.participants()
    assert p.channel_id == "abc"
    assert p.name == "John Doe"
    assert p.account == ADDR_A


def test_last_address_wins():
    logic = RaffleLogic()
    logic.handle_chat_message(chat("abc", ADDR_A))
    logic.handle_chat_message(chat("abc", f"new one {ADDR_B}"))
    [p] = logic.participants()
    assert p.account == ADDR_B


def test_xrb_prefix_is_normalized():
    logic = RaffleLogic()
    logic.handle_chat_message(chat("abc", "xrb_" + ADDR_A[len("nano_"):]))
    assert logic.participants()[0].account == ADDR_A


def test_garbage_tokens_do_not_raise():
    logic = RaffleLogic()
    logic.handle_chat_message(chat("abc", "nano_ nano_123 xrb_zzzz " + ADDR_A[:-1] + "1"))
    assert logic.participants() == []


def test_missing_author_name():
    logic = RaffleLogic()
    logic.handle_chat_message(chat("abc", ADDR_A, name=None))
    assert logic.participants()[0].name == "no name"


def test_end_to_end_spin_handshake():
    logic = make_logic(interval=5.0)

    assert logic.tick(0.0, 0) == []

    logic.handle_chat_message(chat("A", f"addr: {ADDR_A}", name="A"))

    assert logic.tick(5.0, 0) == []
    win = logic.current_win()
    assert win.winner == "A"
    assert win.participants == ("A",)
    assert isinstance(logic.spin_state, Spinning)

    logic.spin_finished()
    assert logic.current_win() is None
    assert isinstance(logic.spin_state, Confirming)

    actions = logic.tick(6.0, 0)
    assert len(actions) == 2
    assert isinstance(actions[0], Notify)
    assert actions[0].message == "Congratulations A! You've just won Ӿ 1.00"
    assert actions[1] == SendToWinner(Winner(name="A", prize=10**30, account=ADDR_A))
    assert logic.winners() == ["A"]
    assert logic.current_win() is None
    assert isinstance(logic.spin_state, Waiting)


def test_no_payout_without_confirmation():
    logic = make_logic(interval=5.0)
    logic.handle_chat_message(chat("A", ADDR_A, name="A"))
    logic.tick(0.0, 0)
    logic.tick(5.0, 0)
    for t in (6.0, 7.0, 8.0, 9.0):
        assert not any(isinstance(a, SendToWinner) for a in logic.tick(t, 0))
    assert logic.winners() == []


def test_payout_only_once_per_draw():
    logic = make_logic(interval=100.0)
    logic.handle_chat_message(chat("A", ADDR_A, name="A"))
    logic.tick(0.0, 0)
    logic.tick(100.0, 0)
    logic.spin_finished()
    first = logic.tick(101.0, 0)
    assert sum(isinstance(a, SendToWinner) for a in first) == 1
    logic.spin_finished()
    assert logic.tick(102.0, 0) == []
    assert logic.winners() == ["A"]


def test_confirm_without_pending_win_is_ignored():
    logic = make_logic()
    logic.spin_finished()
    assert isinstance(logic.spin_state, Waiting)
    assert logic.tick(0.0, 0) == []


def test_confirmed_win_is_paid_before_next_draw_on_same_tick():
    logic = make_logic(interval=5.0)
    logic.handle_chat_message(chat("A", ADDR_A, name="A"))
    logic.tick(0.0, 0)
    logic.tick(5.0, 0)
    logic.spin_finished()
    actions = logic.tick(10.0, 0)
    assert any(isinstance(a, SendToWinner) for a in actions)
    assert logic.current_win().winner == "A"
    assert logic.winners() == ["A"]


def test_empty_raffle_reschedules_silently():
    logic = make_logic(interval=5.0)
    logic.tick(0.0, 0)
    assert logic.tick(5.0, 0) == []
    assert logic.current_win() is None
    assert logic.countdown(5.0) == 5.0


def test_announcement_once_per_cycle():
    logic = make_logic(interval=60.0)
    logic.handle_chat_message(chat("A", ADDR_A, name="A"))
    assert logic.tick(0.0, 0) == []
    assert logic.tick(49.0, 0) == []
    [notice] = logic.tick(50.0, 0)
    assert notice == Notify("Get ready! The next raffle starts in 10 seconds...")
    assert logic.tick(55.0, 0) == []
    assert logic.tick(60.0, 0) == []
    assert logic.tick(109.0, 0) == []
    assert len(logic.tick(110.0, 0)) == 1


def test_announcement_after_empty_cycle():
    logic = make_logic(interval=60.0)
    logic.tick(0.0, 0)
    assert len(logic.tick(50.0, 0)) == 1
    logic.tick(60.0, 0)
    assert len(logic.tick(110.0, 0)) == 1


def test_restart_resets_schedule():
    logic = make_logic(interval=60.0)
    logic.handle_chat_message(chat("A", ADDR_A, name="A"))
    logic.tick(0.0, 0)
    logic.stop()
    logic.start()
    assert logic.tick(70.0, 0) == []
    assert logic.current_win() is None
    assert logic.countdown(70.0) == 60.0
    logic.tick(130.0, 0)
    assert logic.current_win().winner == "A"


def test_countdown():
    logic = make_logic(interval=60.0)
    assert logic.countdown(0.0) == 60.0
    assert logic.countdown(45.0) == 15.0
    assert logic.countdown(90.0) == 0.0


def test_run_raffle_now():
    logic = make_logic(interval=300.0)
    logic.handle_chat_message(chat("A", ADDR_A, name="A"))
    logic.tick(0.0, 0)
    logic.run_raffle_now(3.0)
    logic.tick(3.0, 0)
    assert logic.current_win().winner == "A"


def test_short_cycles_have_no_announcement():
    logic = make_logic(interval=10.0)
    logic.handle_chat_message(chat("a", ADDR_A, name="A"))
    for t in range(0, 31):
        actions = logic.tick(float(t), 0)
        assert not any(isinstance(a, Notify) and a.message.startswith("Get ready") for a in actions)
        logic.spin_finished()


def test_winner_index_for_duplicate_names():
    logic = make_logic(interval=5.0)
    logic.handle_chat_message(chat("a", ADDR_A, name="Sam"))
    logic.handle_chat_message(chat("b", ADDR_B, name="Sam"))
    logic.tick(0.0, 0)
    logic.tick(5.0, 1)
    win = logic.current_win()
    assert win.winner_index == 1
    assert win.destination == ADDR_B


def test_spinner_liveness():
    logic = RaffleLogic()
    assert not logic.spinner_connected(0.0)
    logic.ping(10.0)
    assert logic.spinner_connected(12.0)
    assert logic.spinner_connected(13.0)
    assert not logic.spinner_connected(13.5)


def test_add_participants_from_snapshot():
    from spinapp.participants import Participant

    logic = RaffleLogic()
    logic.add_participants([Participant("x", "X", account_for(3))])
    assert [p.name for p in logic.participants()] == ["X"]
