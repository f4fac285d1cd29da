from __future__ import annotations

import json

from kickoff.models import ProjectContext, SynthesisInput

CONVERSATION_SYSTEM_PROMPT = """You are an enthusiastic and helpful project creation assistant. Your job is to guide users through creating detailed project plans through natural conversation.

Guidelines:
- Be conversational, friendly, and encouraging
- Ask one focused question at a time
- Keep responses concise (2-3 sentences max)
- Build on their previous answers

Your goal is to gather enough information to create a comprehensive project plan with tasks, timeline, and structure."""

SYNTHESIS_SYSTEM_PROMPT = """You are an expert project manager who creates detailed, actionable project plans.

Create comprehensive project plans that include:
- Clear, specific tasks that are actionable
- Realistic effort estimates
- Appropriate priorities based on dependencies
- Tasks that cover the full project lifecycle

Always consider the team size and timeline constraints."""

_STEP_INSTRUCTIONS: dict[int, str] = {
    1: "Ask a thoughtful follow-up question to understand their main goals or what success looks like for this project.",
    2: "Ask about timeline or urgency: when do they want to have this completed?",
    3: "Ask about team size or if they need help from others.",
    4: "Ask about their main success criteria or what would make this project a win.",
    5: "Ask if there are any constraints, preferences, or additional context they'd like to share.",
    6: "Thank them and let them know you'll now generate their complete project plan.",
}


def _context_json(context: ProjectContext) -> str:
    return json.dumps(context.model_dump(exclude_none=True), ensure_ascii=False)


def turn_prompt(step: int, user_input: str, context: ProjectContext) -> str:
    instruction = _STEP_INSTRUCTIONS.get(step)
    if instruction is None:
        return f'Continue the conversation based on: "{user_input}"'
    if step == 1:
        return f'The user wants to create: "{user_input}". {instruction}'
    return f'Project context: {_context_json(context)}. User answer: "{user_input}". {instruction}'


def synthesis_prompt(brief: SynthesisInput) -> str:
    goals = ", ".join(brief.goals) if brief.goals else "None stated"
    return f"""Generate a complete project plan based on this information:

Project Name: {brief.name}
Type: {brief.type}
Description: {brief.description}
Timeline: {brief.timeline}
Team: {brief.team}
Goals: {goals}
Additional Context: {brief.additional_context or "None"}

Please create:
1. A refined project description
2. 6-12 specific, actionable tasks as a numbered list, one task per line
3. Under each task, a line with its priority (low/medium/high/urgent) and effort estimate

Format the response for easy parsing and display."""
