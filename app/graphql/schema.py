import logging
from typing import List, Mapping, Optional

import strawberry
from graphql import GraphQLError
from strawberry.extensions import AddValidationRules
from strawberry.types import ExecutionContext
from strawberry.utils.logging import StrawberryLogger

from app.core.exceptions import BaseAppException
from app.graphql.query_cost import create_query_cost_rule
from app.graphql.resolvers import Mutation, Query

logger = logging.getLogger(__name__)


class Schema(strawberry.Schema):
    def process_errors(self, errors: List[GraphQLError], execution_context: Optional[ExecutionContext] = None) -> None:
        # Taxonomy errors are expected outcomes; only unexpected failures get a traceback
        for error in errors:
            if isinstance(error.original_error, BaseAppException):
                logger.info(f"{error.original_error.code}: {error.message} (path={error.path})")
            else:
                StrawberryLogger.error(error, execution_context)


def create_schema(max_cost: Optional[int] = None, list_weights: Optional[Mapping[str, int]] = None) -> Schema:
    query_cost_rule = create_query_cost_rule(max_cost, list_weights)
    return Schema(
        query=Query,
        mutation=Mutation,
        # Strawberry instantiates extensions per execution
        extensions=[lambda: AddValidationRules([query_cost_rule])],
    )


schema = create_schema()
