"""
agent - Analyst/executor orchestration layer.

Contains tools, bounded memory, prompts, the agent runner, tool-call
enforcement, the continuation heuristic and the iteration controller.
Depends on domain/ and application/. Never imports from infrastructure/.
"""
