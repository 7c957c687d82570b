"""Unit tests for effect tree construction and combinators."""

from collections.abc import Callable

import pytest

import freeprobe as fp


@fp.effect
class Say[K](fp.Effect[K]):
    message: str
    next: K


@fp.effect
class Ask[K](fp.Effect[K]):
    respond: Callable[[int], K]


def test_done_wraps_plain_values():
    """Test that Done stores bare values as resolved payloads."""
    assert fp.Done(1).value == fp.Resolved(1)
    assert fp.Done(fp.Resolved(1)) == fp.Done(1)
    assert fp.pure(1) == fp.Done(1)


def test_done_keeps_deferred_payloads():
    """Test that deferred payloads are not evaluated on construction."""
    calls: list[int] = []
    tree = fp.defer(lambda: calls.append(1) or 5)
    assert isinstance(tree.value, fp.Deferred)
    assert calls == []


def test_failed_is_shared():
    """Test that Failed nodes compare equal to the shared instance."""
    assert fp.Failed() == fp.FAILED


def test_lift():
    """Test that lift fills the continuation slot with a finished tree."""
    assert fp.lift(Say("hi", None)) == fp.Suspended(Say("hi", fp.Done(None)))
    asked = fp.lift(Ask(lambda n: n + 1))
    assert asked.descriptor.respond(1) == fp.Done(2)


def test_map_done():
    """Test that map applies to a terminal value."""
    assert fp.Done(2).map(lambda n: n * 3) == fp.Done(6)


def test_map_forces_deferred_payloads():
    """Test that map evaluates a deferred payload before applying."""
    assert fp.defer(lambda: 2).map(str) == fp.Done("2")


def test_map_poisoned_value_fails():
    """Test that mapping over a poisoned payload yields Failed."""
    assert fp.treachery().map(lambda n: n + 1) == fp.FAILED
    assert fp.Done(fp.POISON).map(lambda n: 0) == fp.FAILED


def test_map_function_touching_poison_fails():
    """Test that a mapped function that inspects poison yields Failed."""
    assert fp.Done(1).map(lambda _: fp.POISON + 1) == fp.FAILED


def test_map_propagates_ordinary_errors():
    """Test that errors other than the abort signal are not hidden."""
    with pytest.raises(ZeroDivisionError):
        fp.Done(1).map(lambda n: n / 0)


def test_map_to_payload_values():
    """Test that a mapped value that is itself a payload is not unwrapped or run."""
    calls: list[str] = []
    deferred = fp.Deferred(lambda: calls.append("ran"))
    assert fp.pure(3).map(fp.Resolved).value == fp.Resolved(fp.Resolved(3))
    assert fp.run_analysis(fp.pure(3).map(fp.Resolved)).value == fp.Resolved(3)
    assert fp.run_analysis(fp.pure(0).map(lambda _: deferred)).value is deferred
    assert fp.run_analysis(fp.Done(lambda _: deferred).ap(fp.pure(0))).value is deferred
    assert calls == []


def test_map_suspended():
    """Test that map reaches through suspended effects to the leaves."""
    tree = fp.Suspended(Say("a", fp.Suspended(Say("b", fp.Done(1)))))
    assert tree.map(lambda n: n + 1) == fp.Suspended(
        Say("a", fp.Suspended(Say("b", fp.Done(2))))
    )


def test_map_failed():
    """Test that Failed is absorbing under map."""
    assert fp.FAILED.map(lambda n: n + 1) == fp.FAILED


def test_bind_done():
    """Test that bind feeds a terminal value to the continuation."""
    assert fp.Done(2).bind(lambda n: fp.lift(Say(str(n), n))) == fp.Suspended(
        Say("2", fp.Done(2))
    )


def test_bind_suspended():
    """Test that bind appends to the end of every branch."""
    tree = fp.lift(Say("a", 1)).bind(lambda n: fp.lift(Say("b", n + 1)))
    assert tree == fp.Suspended(Say("a", fp.Suspended(Say("b", fp.Done(2)))))


def test_bind_function_slot_is_lazy():
    """Test that binding through a function slot composes without calling it."""
    calls: list[int] = []

    def respond(n: int) -> fp.EffectTree[int]:
        calls.append(n)
        return fp.Done(n)

    tree = fp.Suspended(Ask(respond)).bind(lambda n: fp.Done(n * 2))
    assert calls == []
    assert tree.descriptor.respond(4) == fp.Done(8)
    assert calls == [4]


def test_bind_failed_is_absorbing():
    """Test that Failed stays Failed through bind."""
    assert fp.FAILED.bind(lambda n: fp.Done(n)) == fp.FAILED


def test_bind_treachery_fails():
    """Test that binding on the poisoned tree yields Failed."""
    assert fp.treachery().bind(lambda _: fp.Done(1)) == fp.FAILED


def test_ap():
    """Test applicative combination over each pair of shapes."""
    inc = fp.Done(lambda n: n + 1)
    assert inc.ap(fp.Done(1)) == fp.Done(2)
    assert inc.ap(fp.lift(Say("a", 1))) == fp.Suspended(Say("a", fp.Done(2)))
    assert fp.lift(Say("f", lambda n: n * 10)).ap(fp.Done(3)) == fp.Suspended(
        Say("f", fp.Done(30))
    )
    assert inc.ap(fp.FAILED) == fp.FAILED
    assert fp.FAILED.ap(fp.Done(1)) == fp.FAILED
    assert fp.treachery().ap(fp.Done(1)) == fp.FAILED
    assert inc.ap(fp.treachery()) == fp.FAILED


def test_alt():
    """Test left-biased choice with Failed absorption."""
    say = fp.lift(Say("a", 1))
    assert (fp.FAILED | say) == say
    assert (say | fp.Done(2)) == say
    assert (fp.Done(1) | fp.FAILED) == fp.Done(1)
    assert (say | fp.FAILED) == say
    assert fp.FAILED.alt(fp.FAILED) == fp.FAILED


def test_wrap():
    """Test that wrap suspends on a ready-made descriptor."""
    assert fp.wrap(Say("a", fp.Done(1))) == fp.Suspended(Say("a", fp.Done(1)))
