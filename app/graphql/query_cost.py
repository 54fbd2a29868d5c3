"""Static query-cost estimate evaluated as a GraphQL validation rule.

Every selected field costs the multiplier in effect at its depth. Selections
beneath a list-producing field (``shipments`` by default) are walked with the
multiplier scaled by that field's weight, modelling the rows it may return.
Fragments are transparent: their selections are costed where they are spread.
Documents over the ceiling fail validation, so no resolver ever runs.

The cost of a selection set is linear in its multiplier, so each fragment is
walked once at multiplier 1 and its cost scaled at every spread. The walk
stays linear in the size of the document however often fragments are spread.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, Mapping, Optional, Type

from graphql import (
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    GraphQLError,
    InlineFragmentNode,
    OperationDefinitionNode,
    SelectionSetNode,
    ValidationContext,
    ValidationRule,
)

from app.core.config import settings
from app.core.exceptions import QueryTooComplex

logger = logging.getLogger(__name__)

FragmentLookup = Callable[[str], Optional[FragmentDefinitionNode]]

# Marks a fragment whose cost is being computed; a spread that meets it is a cycle
_IN_PROGRESS = -1


def selection_set_cost(
    selection_set: Optional[SelectionSetNode],
    multiplier: int,
    list_weights: Mapping[str, int],
    get_fragment: FragmentLookup,
    fragment_costs: Optional[Dict[str, int]] = None,
) -> int:
    """Cost of ``selection_set`` at ``multiplier``.

    ``fragment_costs`` caches the unit cost of every fragment already walked
    and may be shared across calls over the same document.
    """
    if selection_set is None:
        return 0

    fragment_costs = fragment_costs if fragment_costs is not None else {}
    unit_cost = 0
    for selection in selection_set.selections:
        if isinstance(selection, FieldNode):
            unit_cost += 1
            if selection.selection_set is not None:
                unit_cost += list_weights.get(selection.name.value, 1) * selection_set_cost(
                    selection.selection_set, 1, list_weights, get_fragment, fragment_costs
                )
        elif isinstance(selection, InlineFragmentNode):
            unit_cost += selection_set_cost(
                selection.selection_set, 1, list_weights, get_fragment, fragment_costs
            )
        elif isinstance(selection, FragmentSpreadNode):
            unit_cost += _fragment_cost(selection.name.value, list_weights, get_fragment, fragment_costs)
    return multiplier * unit_cost


def _fragment_cost(
    name: str,
    list_weights: Mapping[str, int],
    get_fragment: FragmentLookup,
    fragment_costs: Dict[str, int],
) -> int:
    cached = fragment_costs.get(name)
    if cached is not None:
        # Cyclic spreads are reported by the NoFragmentCycles rule
        return 0 if cached == _IN_PROGRESS else cached

    fragment = get_fragment(name)
    if fragment is None:
        return 0

    fragment_costs[name] = _IN_PROGRESS
    cost = selection_set_cost(fragment.selection_set, 1, list_weights, get_fragment, fragment_costs)
    fragment_costs[name] = cost
    return cost


def operation_cost(
    operation: OperationDefinitionNode,
    get_fragment: FragmentLookup,
    list_weights: Optional[Mapping[str, int]] = None,
    fragment_costs: Optional[Dict[str, int]] = None,
) -> int:
    """Estimated cost of one operation, starting with multiplier 1 at its root"""
    weights = settings.LIST_FIELD_WEIGHTS if list_weights is None else list_weights
    return selection_set_cost(operation.selection_set, 1, weights, get_fragment, fragment_costs)


def create_query_cost_rule(
    max_cost: Optional[int] = None,
    list_weights: Optional[Mapping[str, int]] = None,
) -> Type[ValidationRule]:
    """Build a validation rule class enforcing ``max_cost`` on each operation"""
    ceiling = settings.MAX_QUERY_COST if max_cost is None else max_cost
    weights = dict(settings.LIST_FIELD_WEIGHTS if list_weights is None else list_weights)

    class QueryCostRule(ValidationRule):
        def __init__(self, context: ValidationContext):
            super().__init__(context)
            # Fragment unit costs, shared by every operation in the document
            self.fragment_costs: Dict[str, int] = {}

        def enter_operation_definition(self, node: OperationDefinitionNode, *_args):
            cost = operation_cost(node, self.context.get_fragment, weights, self.fragment_costs)
            if cost > ceiling:
                error = QueryTooComplex(cost, ceiling)
                logger.warning(f"Rejected operation {node.name.value if node.name else '<anonymous>'}: {error}")
                self.report_error(GraphQLError(error.message, node, original_error=error, extensions=error.extensions))

    return QueryCostRule
