"""
Context Builder - assembles the ordered prompt sent to the model.
"""

from typing import List, Sequence

from ..llm.base import LLMMessage
from ..models.component import Component
from ..models.session import Message, MessageType

GENERATION_HISTORY_LIMIT = 5
REFINEMENT_HISTORY_LIMIT = 3

GENERATION_SYSTEM_PROMPT = """You are an expert React component generator. Your task is to create high-quality, production-ready React components based on user descriptions.

Guidelines:
1. Generate clean, modern React components using functional components and hooks
2. Include comprehensive CSS styling with modern design principles
3. Use semantic HTML elements and proper accessibility attributes
4. Implement responsive design with a mobile-first approach
5. Add hover states, transitions, and micro-interactions where appropriate
6. Follow React best practices and naming conventions
7. Make components reusable and configurable through props

Response format:
- Start with a brief description of the component's purpose and features
- Provide the complete component code in a ```jsx fenced block
- Provide all styles in a ```css fenced block
- Name the component with a descriptive PascalCase name

Always respond with valid, executable code that can be rendered immediately."""

REFINEMENT_SYSTEM_PROMPT = """You are refining an existing React component. The user wants to modify the current component based on their feedback.

Current Component:
Name: {name}
Description: {description}

JSX Code:
{jsx}

CSS Code:
{css}

Guidelines for refinement:
1. Make only the requested changes while preserving the component's core functionality
2. Maintain code quality and consistency
3. Keep the same component structure unless major changes are requested
4. Update both JSX and CSS as needed
5. Preserve existing functionality that wasn't mentioned for change

Respond with a brief description of the changes, then the complete refined component in a ```jsx block and its styles in a ```css block."""


def recent_history(messages: Sequence[Message], limit: int) -> List[Message]:
    """The newest ``limit`` messages, oldest first."""
    if limit <= 0:
        return []
    return list(messages[-limit:])


def _history_turns(messages: Sequence[Message], limit: int) -> List[LLMMessage]:
    return [
        LLMMessage.text("user" if m.type == MessageType.USER else "assistant", m.content)
        for m in recent_history(messages, limit)
    ]


def build_generation_context(prompt: str, previous_messages: Sequence[Message]) -> List[LLMMessage]:
    """System prompt, up to 5 prior messages, then the new user prompt."""
    return [
        LLMMessage.text("system", GENERATION_SYSTEM_PROMPT),
        *_history_turns(previous_messages, GENERATION_HISTORY_LIMIT),
        LLMMessage.text("user", prompt),
    ]


def build_refinement_context(
    prompt: str,
    current_component: Component,
    previous_messages: Sequence[Message],
) -> List[LLMMessage]:
    """System prompt embedding the current component, up to 3 prior messages, then the prompt."""
    system_prompt = REFINEMENT_SYSTEM_PROMPT.format(
        name=current_component.name,
        description=current_component.description,
        jsx=current_component.jsx,
        css=current_component.css,
    )
    return [
        LLMMessage.text("system", system_prompt),
        *_history_turns(previous_messages, REFINEMENT_HISTORY_LIMIT),
        LLMMessage.text("user", prompt),
    ]
