"""Tool-call idempotency ledger"""


class ToolCallLedger:
    """
    Records which tool calls have had their client-side effect applied.

    Scoped to one chat session: a new session starts with an empty ledger.
    """

    def __init__(self):
        self._claimed: set[str] = set()

    def claim(self, tool_call_id: str) -> bool:
        """Mark a call as processed. Returns False if it already was."""
        if tool_call_id in self._claimed:
            return False
        self._claimed.add(tool_call_id)
        return True

    def __contains__(self, tool_call_id: str) -> bool:
        return tool_call_id in self._claimed

    def __len__(self) -> int:
        return len(self._claimed)

    def reset(self) -> None:
        self._claimed.clear()
