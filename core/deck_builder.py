"""
Deck construction for a round.

Turns a requested pair count plus card templates into a shuffled board
where every template appears exactly twice.
"""
import logging
import random
from typing import List, Optional, Sequence

from .data_models import Card, CardTemplate
from .exceptions import DataUnavailable

logger = logging.getLogger(__name__)


def usable_templates(templates: Sequence[CardTemplate]) -> List[CardTemplate]:
    """
    Filter templates down to ones that can be put on a board.

    A template needs a display name and a face image; later duplicates
    of an already seen display name are dropped so pairs stay unambiguous.

    Args:
        templates: Templates returned by an asset provider

    Returns:
        Usable templates in their original order
    """
    seen = set()
    usable = []
    for template in templates:
        if not template.display_name or not template.face_image_ref:
            logger.warning("Skipping template without name or image: %r", template)
            continue
        if template.display_name in seen:
            logger.debug("Skipping duplicate template %s", template.display_name)
            continue
        seen.add(template.display_name)
        usable.append(template)
    return usable


def build_deck(
    pair_count: int,
    templates: Sequence[CardTemplate],
    back_image_ref: str = "",
    rng: Optional[random.Random] = None,
) -> List[Card]:
    """
    Build a shuffled deck of ``2 * pair_count`` cards.

    Args:
        pair_count: Number of pairs on the board
        templates: Candidate card faces; only the first ``pair_count`` usable ones are used
        back_image_ref: Shared card back reference
        rng: Random source, defaults to the module-level generator

    Returns:
        Cards in random order, ``card_id`` set to the board position

    Raises:
        DataUnavailable: If pair_count is not positive or too few usable templates exist
    """
    if pair_count <= 0:
        raise DataUnavailable(f"Pair count must be positive, got {pair_count}", requested=pair_count, received=0)

    usable = usable_templates(templates)
    if len(usable) < pair_count:
        raise DataUnavailable(
            f"Need {pair_count} card templates, only {len(usable)} usable",
            requested=pair_count,
            received=len(usable),
        )

    deck = []
    for pair_id, template in enumerate(usable[:pair_count]):
        for _ in range(2):
            deck.append(Card(
                card_id="",
                pair_id=pair_id,
                display_name=template.display_name,
                face_image_ref=template.face_image_ref,
                back_image_ref=back_image_ref,
            ))

    (rng or random).shuffle(deck)
    for position, card in enumerate(deck):
        card.card_id = str(position)

    logger.debug("Built deck of %d cards (%d pairs)", len(deck), pair_count)
    return deck
