"""
agent.prompt - System prompts and contextual task prompts for both roles.

System prompts are built from the granted tool subset so each agent only
hears about tools it can actually call. The contextual builders turn the
IterationContext into the per-iteration task prompt.
"""

from __future__ import annotations

from agent.tools.registry import ToolRegistry
from domain.models import AgentRole, IterationContext

# Truncation budgets for text relayed between agents
LAST_EXECUTOR_CHARS = 200
GUIDANCE_CHARS = 300


def build_analyst_system_prompt(registry: ToolRegistry) -> str:
    """System prompt for the read-only investigating agent."""
    tools = ", ".join(registry.names())
    return f"""You are the Strategic Analyst in an iterative two-agent system. You investigate, the Executor acts.

EACH ITERATION:
1. INVESTIGATE the workspace with your tools before giving any guidance
2. ANALYZE what exists, what changed and what is still missing
3. GUIDE the Executor with specific files, paths and actions

RULES:
- Always call tools to look at the workspace; do not guess file contents
- Be specific about paths and the exact changes needed
- If the request is ambiguous, list your QUESTIONS FOR USER: instead of guessing
- When the request is fully satisfied, say "task completed"

Available tools: {tools}

RESPONSE FORMAT:
INVESTIGATION: [tools used and what they showed]
ANALYSIS: [current state versus the request]
GUIDANCE: [numbered, concrete steps for the Executor]

Keep responses brief."""


def build_executor_system_prompt(registry: ToolRegistry) -> str:
    """System prompt for the acting agent with the full tool set."""
    tools = ", ".join(registry.names())
    return f"""You are the Action Executor in an iterative two-agent system. The Analyst investigates and gives guidance; you carry it out.

RULES:
- Always use tools to perform the requested actions
- Do not describe what you would do - do it
- Create files, edit code and run commands as instructed
- Report the actual results of your tool calls

Available tools: {tools}

RESPONSE FORMAT:
ACTIONS TAKEN: [tools you called and what they did]
FILES CREATED/MODIFIED: [paths]
STATUS: [state after your actions]
NEXT STEP: [what the Analyst should look at next, or "task completed"]

Be brief."""


def build_observation_prompt(request: str) -> str:
    """Investigation-only prompt run once before the first iteration of a task."""
    return f"""Before starting any task, observe and understand the current workspace structure and files.
Use list_files to see the folder structure, then read key files to understand the project context.

TASK TO PREPARE FOR: {request}

First, examine the workspace to understand what we're working with."""


def build_analyst_prompt(context: IterationContext, iteration: int) -> str:
    """Task prompt for the analyst: the request plus the executor's latest report."""
    prompt = f"ITERATION: {iteration}\nREQUEST: {context.original_request}"

    if context.current_input and (iteration == 1 or context.current_input != context.original_request):
        prompt += f"\nCURRENT INPUT: {context.current_input}"

    last_executor = context.last(AgentRole.EXECUTOR)
    if last_executor is not None:
        prompt += f"\n\nLAST EXECUTOR: {last_executor.message[:LAST_EXECUTOR_CHARS]}"
        if last_executor.tools_used:
            prompt += f"\nTools used: {', '.join(last_executor.tools_used)}"

    prompt += "\n\nInvestigate and provide guidance for next step."
    return prompt


def build_executor_prompt(context: IterationContext, iteration: int, guidance: str) -> str:
    """Task prompt for the executor: the request plus truncated analyst guidance.

    In single-role mode there is no guidance; the executor sees its own
    previous report instead.
    """
    prompt = f"ITERATION: {iteration}\nREQUEST: {context.original_request}"

    if guidance:
        prompt += f"\n\nANALYST GUIDANCE:\n{guidance[:GUIDANCE_CHARS]}"
        prompt += "\n\nExecute the guidance using your tools."
        return prompt

    if context.current_input and context.current_input != context.original_request:
        prompt += f"\nCURRENT INPUT: {context.current_input}"
    last_executor = context.last(AgentRole.EXECUTOR)
    if last_executor is not None:
        prompt += f"\n\nPREVIOUS EXECUTION: {last_executor.message[:LAST_EXECUTOR_CHARS]}"
    prompt += "\n\nWork on the request using your tools and report what you did."
    return prompt
