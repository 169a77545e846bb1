"""Text rendering of a round snapshot."""
from typing import List

from core.data_models import FlipState, RoundSnapshot, RoundState

BOARD_COLUMNS = 4
CELL_WIDTH = 14

# face-down filler per theme
_BACK_PATTERN = {
    "light": "#",
    "dark": "░",
}


def card_label(position: int, name: str, flip_state: FlipState, theme: str = "light") -> str:
    if flip_state is FlipState.MATCHED:
        text = f"*{name}*"
    elif flip_state is FlipState.FACE_UP:
        text = name
    else:
        text = f"{position:>2} " + _BACK_PATTERN.get(theme, "#") * 4
    return f"[{text[:CELL_WIDTH - 2]:^{CELL_WIDTH - 2}}]"


def render_status(snapshot: RoundSnapshot) -> str:
    if snapshot.state is RoundState.IDLE:
        return "No round. Type 'start easy|medium|hard'."
    if snapshot.state is RoundState.SETUP:
        return "Fetching cards..."

    if snapshot.power_up_revealing:
        power = "revealing"
    elif snapshot.power_up_available:
        power = "ready"
    elif snapshot.cooldown_remaining:
        power = f"{snapshot.cooldown_remaining}s"
    else:
        power = "-"

    return (
        f"Clicks: {snapshot.click_count}  "
        f"Matched: {snapshot.pairs_matched}  "
        f"Left: {snapshot.pairs_remaining}  "
        f"Total: {snapshot.pair_total}  "
        f"Time: {snapshot.time_remaining}s  "
        f"Reveal: {power}"
    )


def render_board(snapshot: RoundSnapshot, theme: str = "light") -> str:
    """Render the card grid; cards are numbered from 1."""
    lines: List[str] = [render_status(snapshot)]
    cards = snapshot.cards
    for row_start in range(0, len(cards), BOARD_COLUMNS):
        row = cards[row_start:row_start + BOARD_COLUMNS]
        lines.append(" ".join(
            card_label(int(card.card_id) + 1, card.display_name, card.flip_state, theme)
            for card in row
        ))
    if snapshot.state is RoundState.WON:
        lines.append("*** You Win! ***")
    elif snapshot.state is RoundState.LOST:
        lines.append("*** Game Over ***")
    return "\n".join(lines)
