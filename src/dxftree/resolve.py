from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterator

from .entities import Block, BlockReference, Entity
from .node import DocumentNode

if TYPE_CHECKING:
    from .document import Document

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolveResult:
    layers_bound: int = 0
    blocks_bound: int = 0
    unresolved_layers: tuple[str, ...] = ()
    unresolved_blocks: tuple[str, ...] = ()
    entity_count: int = 0

    @property
    def complete(self) -> bool:
        return not self.unresolved_layers and not self.unresolved_blocks


def _iter_entities(section: DocumentNode | None) -> Iterator[Entity]:
    if section is None:
        return
    for node in section.walk_post_order():
        if isinstance(node, Entity):
            yield node


def resolve_references(document: Document) -> ResolveResult:
    """Bind entity layers and block references by case-insensitive name.

    Every association is recomputed from scratch, so running this again after
    edits leaves no stale bindings behind.
    """
    layers = {}
    for layer in document.get_layers():
        layers.setdefault(layer.name.casefold(), layer)
    blocks = {}
    for block in document.get_blocks():
        blocks.setdefault(block.name.casefold(), block)

    entities = list(_iter_entities(document.entities_section))
    entities.extend(_iter_entities(document.blocks_section))

    layers_bound = 0
    missing_layers: dict[str, None] = {}
    for entity in entities:
        layer = layers.get(entity.layer_name.casefold())
        entity.bind_layer(layer)
        entity.resolved_color = entity.display_color()
        if layer is None:
            missing_layers.setdefault(entity.layer_name, None)
        else:
            layers_bound += 1

    blocks_bound = 0
    missing_blocks: dict[str, None] = {}
    for entity in entities:
        if not isinstance(entity, BlockReference):
            continue
        block = blocks.get(entity.block_name.casefold())
        entity.bind_block(block)
        if block is None:
            missing_blocks.setdefault(entity.block_name, None)
        else:
            blocks_bound += 1

    # bounds of blocks depend on the references bound above
    for entity in entities:
        if isinstance(entity, Block):
            entity.invalidate()

    if missing_layers:
        logger.debug("unresolved layers: %s", ", ".join(missing_layers))
    if missing_blocks:
        logger.debug("unresolved blocks: %s", ", ".join(missing_blocks))

    return ResolveResult(
        layers_bound=layers_bound,
        blocks_bound=blocks_bound,
        unresolved_layers=tuple(missing_layers),
        unresolved_blocks=tuple(missing_blocks),
        entity_count=len(entities),
    )
