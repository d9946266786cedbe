from typing import Annotated
from typing_extensions import TypedDict

from langgraph.graph import StateGraph, START, END
from langgraph.graph.message import add_messages
from langchain_openai import ChatOpenAI
from langchain_core.messages import SystemMessage

import config

SYSTEM_PROMPT = (
    "You are a helpful AI assistant for the SkyGlymps application. "
    "Provide clear, concise, and friendly responses."
)

TEMPERATURE = 0.7
MAX_TOKENS = 500


class State(TypedDict):
    """State schema for the chat graph."""
    messages: Annotated[list, add_messages]


llm = ChatOpenAI(model=config.CHAT_MODEL, temperature=TEMPERATURE, max_tokens=MAX_TOKENS)


def with_system_prompt(messages: list) -> list:
    """Prepend the system prompt unless the conversation already starts with one."""
    if messages and isinstance(messages[0], SystemMessage):
        return messages
    return [SystemMessage(content=SYSTEM_PROMPT)] + list(messages)


async def chatbot(state: State):
    """Single completion for the user's message."""
    response = await llm.ainvoke(with_system_prompt(state["messages"]))
    return {"messages": [response]}


graph_builder = StateGraph(State)
graph_builder.add_node("chatbot", chatbot)
graph_builder.add_edge(START, "chatbot")
graph_builder.add_edge("chatbot", END)

graph = graph_builder.compile()
