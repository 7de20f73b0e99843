"""Basic typewriter session on a virtual clock.

This example demonstrates:
- Typing into a page through the key buffer
- A drip suggestion from the ghostwriter, committed by the next key
- A scripted suggestion that locks input while it writes
- Turning the page with the lever and sliding back through history

Note: This example uses the scripted backend so that it runs offline.
Swap in HttpBackend or OpenAIBackend to talk to a real story server.
"""

from ghost_typewriter import EngineConfig, ScriptedBackend, TypewriterSession, VirtualClock


def show(session: TypewriterSession, label: str) -> None:
    view = session.view()
    ghost = f" [{view.ghost_kind}: {view.ghost_text!r}]" if view.ghost_kind else ""
    print(f"{label:<28} {view.page_label} | {view.page_text!r}{ghost}")


def main():
    config = EngineConfig(max_lines=4, inactivity_threshold_ms=500, min_words_for_request=3)
    clock = VirtualClock()
    backend = ScriptedBackend(
        decisions=[True, True],
        replies=[
            " and the hallway light flickered",
            {
                "metadata": {"font_color": "#2a120f"},
                "writing_sequence": [
                    {"action": "type", "text": " Who is there?", "delay": 400},
                    {"action": "pause", "delay": 300},
                    {"action": "delete", "count": 10, "delay": 200},
                    {"action": "retype", "text": " is there.", "delay": 200},
                ],
            },
        ],
        backgrounds=["/films/hallway.png"],
    )

    session = TypewriterSession(config, clock=clock, backend=backend)
    session.subscribe(
        lambda name, payload: print(f"  <{name}> {payload}")
        if name in ("suggestion", "end_of_page", "page_turned", "sequence_complete")
        else None
    )

    try:
        session.start()
        clock.advance(config.intro_duration_ms)

        # The writer types, then pauses long enough for the ghost to reply
        session.type_text("I came home late")
        clock.advance(3000)
        show(session, "After a pause:")

        # The next key commits whatever the ghost has left on the page
        session.type_text(".\nSomeone")
        clock.advance(3000)
        show(session, "Ghost takes over:")

        clock.advance(2000)
        show(session, "Sequence finished:")

        # Pull the lever; the new page gets a background from the image oracle
        session.turn_page()
        clock.advance(config.scroll_duration_ms + config.slide_duration_ms + config.intro_duration_ms)
        show(session, "After the page turn:")

        # Older pages can be revisited but not typed on
        session.prev_page()
        clock.advance(config.slide_duration_ms + config.intro_duration_ms)
        show(session, "Back on page one:")
        print(f"Typing allowed here: {session.view().typing_allowed}")

    finally:
        session.close()


if __name__ == "__main__":
    main()
