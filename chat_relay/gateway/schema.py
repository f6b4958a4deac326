"""
GraphQL schema and resolvers.

Resolvers are plain functions keyed by operation name; their collaborators
come from the per-request context built in ``make_context``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from ariadne import MutationType, QueryType, make_executable_schema
from graphql import GraphQLResolveInfo, GraphQLSchema

from .query import QueryGateway
from .sessions import SessionGateway

TYPE_DEFS = """
  type Query {
    hello: String!
  }

  type ChatResponse {
    id: String
    object: String
    created: Int
    model: String
    choices: [Choice]
    usage: Usage
  }

  type Choice {
    index: Int
    message: Message
    finish_reason: String
  }

  type Message {
    role: String
    content: String
  }

  type Usage {
    prompt_tokens: Int
    completion_tokens: Int
    total_tokens: Int
  }

  type Mutation {
    chat(message: String!, systemPrompt: String): ChatResponse
    chatStream(message: String!, systemPrompt: String): String
  }
"""


def resolve_hello(_obj: Any, info: GraphQLResolveInfo) -> str:
    query_gateway: QueryGateway = info.context["query_gateway"]
    return query_gateway.hello()


async def resolve_chat(
    _obj: Any,
    info: GraphQLResolveInfo,
    message: str,
    system_prompt: str | None = None,
) -> dict[str, Any]:
    query_gateway: QueryGateway = info.context["query_gateway"]
    return await query_gateway.chat(message, system_prompt)


def resolve_chat_stream(
    _obj: Any,
    info: GraphQLResolveInfo,
    message: str,
    system_prompt: str | None = None,
) -> str:
    session_gateway: SessionGateway = info.context["session_gateway"]
    request = info.context["request"]
    origin = f"{request.url.scheme}://{request.url.netloc}"
    return session_gateway.chat_stream(message, system_prompt, origin=origin)


QUERY_RESOLVERS: dict[str, Callable[..., Any]] = {
    "hello": resolve_hello,
}

MUTATION_RESOLVERS: dict[str, Callable[..., Any]] = {
    "chat": resolve_chat,
    "chatStream": resolve_chat_stream,
}


def build_schema() -> GraphQLSchema:
    """Build the executable schema once; it is not mutated afterwards."""
    query = QueryType()
    for field_name, resolver in QUERY_RESOLVERS.items():
        query.set_field(field_name, resolver)

    mutation = MutationType()
    for field_name, resolver in MUTATION_RESOLVERS.items():
        mutation.set_field(field_name, resolver)

    return make_executable_schema(
        TYPE_DEFS, query, mutation, convert_names_case=True
    )


def make_context_factory(
    query_gateway: QueryGateway, session_gateway: SessionGateway
) -> Callable[..., dict[str, Any]]:
    """Context value callable for ariadne's ASGI app."""

    def make_context(request: Any, _data: Any = None) -> dict[str, Any]:
        return {
            "request": request,
            "query_gateway": query_gateway,
            "session_gateway": session_gateway,
        }

    return make_context
