"""
factory - Composition root for the workspace assistant.

ALL dependency wiring happens here. No other module constructs its own
dependencies. Adapters (CLI, REST/WebSocket) call this factory to get
fully configured sessions.

Usage:
    from factory import ServiceFactory
    from infrastructure.config import Settings

    config = Settings.from_env()
    factory = ServiceFactory(config)
    factory.initialize()  # one-time startup

    session = factory.create_session()
    reply = await session.handle(user_input, sink)
"""

from __future__ import annotations

import logging
from typing import Optional

from agent.continuation import KeywordContinuationPolicy
from agent.controller import ControllerConfig, IterationController
from agent.enforcement import ToolCallEnforcer
from agent.memory import BoundedMemory
from agent.prompt import build_analyst_system_prompt, build_executor_system_prompt
from agent.runner import AgentRunner
from agent.session import AgentSession
from agent.tools.create_file import CreateFileOrFolderTool
from agent.tools.edit_file import EditFileTool
from agent.tools.execute_command import ExecuteInTerminalTool
from agent.tools.list_files import ListFilesTool
from agent.tools.move_file import MoveFileOrFolderTool
from agent.tools.read_file import ReadFileTool
from agent.tools.registry import ToolRegistry
from agent.tools.search_files import SearchInFilesTool
from application.context import SessionContext
from application.services.file_tree import FileTreeService
from domain.models import AgentRole
from domain.ports import ModelClientPort
from infrastructure.config import Settings

logger = logging.getLogger(__name__)

# Read-only investigation tools granted to the analyst
ANALYST_TOOLS = ("list_files", "read_file", "search_in_files")


class ServiceFactory:
    """Composition root: wires all dependencies together.

    Call initialize() once at startup, then create sessions as needed.
    The registry, runners and controller are shared; each session gets its
    own SessionContext and BoundedMemory.
    """

    def __init__(self, config: Settings, model_client: Optional[ModelClientPort] = None):
        self._config = config
        self._model_client = model_client
        self._registry: Optional[ToolRegistry] = None
        self._controller: Optional[IterationController] = None
        self._initialized = False

    @property
    def config(self) -> Settings:
        return self._config

    def initialize(self) -> None:
        """One-time startup: build tools, the model client and the controller."""
        logger.info("Initializing ServiceFactory...")
        self._registry = self.create_registry()
        if self._model_client is None:
            self._model_client = self._build_model_client()
        self._controller = self.create_controller()
        self._initialized = True
        logger.info(
            "ServiceFactory ready (provider=%s, model=%s, workspace=%s)",
            self._config.llm_provider, self._config.llm_model, self._config.workspace_root,
        )

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create_registry(self) -> ToolRegistry:
        """Register the seven workspace tools and seal the registry."""
        root = self._config.workspace_root
        registry = ToolRegistry()
        registry.register(CreateFileOrFolderTool(root))
        registry.register(ListFilesTool(root))
        registry.register(ReadFileTool(root))
        registry.register(EditFileTool(root))
        registry.register(MoveFileOrFolderTool(root))
        registry.register(SearchInFilesTool(root))
        registry.register(ExecuteInTerminalTool(root, timeout=self._config.command_timeout))
        return registry.seal()

    def create_controller(self) -> IterationController:
        """Build both runners over their granted tool subsets."""
        registry = self._registry or self.create_registry()
        analyst_tools = registry.subset(ANALYST_TOOLS)
        executor_tools = registry.subset(registry.names())

        analyst = AgentRunner(
            name="Analyst",
            role=AgentRole.ANALYST,
            system_prompt=build_analyst_system_prompt(analyst_tools),
            tools=analyst_tools,
            model_client=self._model_client,
            quota_backoff=self._config.quota_backoff,
            recursion_limit=self._config.recursion_limit,
        )
        executor = AgentRunner(
            name="Executor",
            role=AgentRole.EXECUTOR,
            system_prompt=build_executor_system_prompt(executor_tools),
            tools=executor_tools,
            model_client=self._model_client,
            quota_backoff=self._config.quota_backoff,
            recursion_limit=self._config.recursion_limit,
        )
        return IterationController(
            analyst=analyst,
            executor=executor,
            enforcer=ToolCallEnforcer(),
            policy=KeywordContinuationPolicy(self._config.stop_bias),
            config=ControllerConfig(
                max_iterations=self._config.max_iterations,
                agent_roles=self._config.agent_roles,
                use_memory=self._config.use_memory,
                observe_first=self._config.observe_first,
                enforce_tools=self._config.enforce_tools,
                phase_delay=self._config.phase_delay,
                iteration_delay=self._config.iteration_delay,
            ),
        )

    def create_session(self, ctx: Optional[SessionContext] = None) -> AgentSession:
        """Create a session with its own context and memory."""
        self._ensure_initialized()
        memory = (
            BoundedMemory(max_entries=self._config.memory_max_entries)
            if self._config.use_memory else None
        )
        session = AgentSession(self._controller, memory=memory, ctx=ctx)
        logger.info("Created session %s", session.ctx.session_id)
        return session

    def create_file_tree_service(self) -> FileTreeService:
        return FileTreeService(self._config.workspace_root)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _build_model_client(self) -> ModelClientPort:
        from infrastructure.llm.llm_builder import build_llm
        from infrastructure.llm.model_client import LangChainModelClient

        llm = build_llm(
            provider=self._config.llm_provider,
            model=self._config.llm_model,
            google_api_key=self._config.google_api_key,
            openai_api_key=self._config.openai_api_key,
            groq_api_key=self._config.groq_api_key,
            ollama_base_url=self._config.ollama_base_url,
        )
        return LangChainModelClient(llm)

    def _ensure_initialized(self) -> None:
        if not self._initialized:
            raise RuntimeError(
                "ServiceFactory not initialized. Call factory.initialize() first."
            )
