"""Tests for ScriptedMoveSource."""

import asyncio

from src.input.source import QUIT_EVENT, InputEvent, InputKind, ScriptedMoveSource


class TestScriptedMoveSource:
    def test_replays_in_order(self):
        async def scenario():
            source = ScriptedMoveSource([InputEvent.digit(4), QUIT_EVENT])
            assert await source.next_event() == InputEvent.digit(4)
            assert (await source.next_event()).kind is InputKind.QUIT

        asyncio.run(scenario())

    def test_gate_holds_the_next_event(self):
        async def scenario():
            opened = asyncio.Event()
            source = ScriptedMoveSource([opened.wait, InputEvent.digit(1)])
            pending = asyncio.create_task(source.next_event())
            await asyncio.sleep(0.01)
            assert not pending.done()
            opened.set()
            assert await pending == InputEvent.digit(1)

        asyncio.run(scenario())

    def test_idles_when_exhausted_until_pushed(self):
        async def scenario():
            source = ScriptedMoveSource()
            pending = asyncio.create_task(source.next_event())
            await asyncio.sleep(0.01)
            assert not pending.done()
            source.push(QUIT_EVENT)
            assert await pending == QUIT_EVENT

        asyncio.run(scenario())
