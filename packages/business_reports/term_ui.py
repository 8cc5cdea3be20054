"""Tiny terminal UI helpers (prompt_toolkit-based).

Kept apart from the CLI so the prompts can be driven headlessly in tests with
a pipe input and a dummy output.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import WordCompleter
from prompt_toolkit.key_binding import KeyBindings
from prompt_toolkit.validation import ValidationError, Validator

INVOICE_STATUSES: tuple[str, ...] = ("draft", "pending", "sent", "paid", "overdue", "cancelled")


def _session(session: PromptSession | None, kb: KeyBindings) -> PromptSession:
    if session is None:
        return PromptSession(key_bindings=kb)
    return PromptSession(
        input=getattr(session, "input", None),
        output=getattr(session, "output", None),
        key_bindings=kb,
    )


def select_status(
    statuses: Sequence[str] | Iterable[str] = INVOICE_STATUSES,
    *,
    default: str = "",
    message: str = "New status (Enter to accept • Esc to cancel): ",
    session: PromptSession | None = None,
) -> str | None:
    """Prompt for one of ``statuses``.

    Matching is case-insensitive and the canonical spelling is returned. Enter
    on a strict prefix of exactly one status accepts that status. Esc or
    Ctrl+C cancels and returns ``None``.
    """

    words = list(statuses)
    canonical = {w.lower(): w for w in words}

    def _resolve(text: str) -> str | None:
        lower = text.strip().lower()
        if not lower:
            return None
        if lower in canonical:
            return canonical[lower]
        matches = [w for w in words if w.lower().startswith(lower)]
        return matches[0] if len(matches) == 1 else None

    kb = KeyBindings()

    @kb.add("escape", eager=True)
    def _(event) -> None:  # pragma: no cover - exercised indirectly
        event.app.exit(result=None)

    @kb.add("c-c", eager=True)
    def _(event) -> None:  # pragma: no cover - exercised indirectly
        event.app.exit(result=None)

    @kb.add("enter", eager=True)
    def _(event) -> None:  # pragma: no cover - exercised indirectly
        b = event.app.current_buffer
        cs = b.complete_state
        if cs is not None and cs.current_completion is not None:
            b.apply_completion(cs.current_completion)
        else:
            resolved = _resolve(b.document.text)
            if resolved is not None and resolved != b.document.text:
                b.text = resolved
                b.cursor_position = len(resolved)
        b.validate_and_handle()

    class _StatusValidator(Validator):
        def validate(self, document) -> None:
            if _resolve(document.text) is None:
                raise ValidationError(message=f"Choose one of: {', '.join(words)}")

    completer = WordCompleter(words, ignore_case=True, match_middle=False, sentence=False)
    sess = _session(session, kb)
    result = sess.prompt(
        message,
        default=default,
        completer=completer,
        validator=_StatusValidator(),
        validate_while_typing=False,
        key_bindings=kb,
    )
    if result is None:
        return None
    return _resolve(result)


__all__ = ["INVOICE_STATUSES", "select_status"]
