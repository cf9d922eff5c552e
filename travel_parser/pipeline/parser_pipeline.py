import json
import logging
from pathlib import Path
from typing import Dict, Any, Callable, Optional
from datetime import datetime
from langgraph.graph import StateGraph, START, END
from ..llm.base_provider import BaseLLMProvider
from ..llm.provider_factory import LLMProviderFactory
from ..llm.model_catalog import DEFAULT_MODEL_ID
from ..models.parser_state import ParserState, create_initial_state
from ..processors.classifier import DocumentClassifier
from ..processors.extractor import DataExtractor
from ..processors.validator import DataValidator

logger = logging.getLogger(__name__)

StageFn = Callable[[ParserState], ParserState]


class DocumentParserPipeline:
    """Classifier -> Extractor -> Validator, one pass, no internal retries.

    Stage failures are soft: every run reaches the end of the graph and the
    caller decides what confidence is good enough.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None,
                 model_id: Optional[str] = None,
                 llm: Optional[BaseLLMProvider] = None):
        self.config = config or {}
        self.model_id = model_id or self.config.get('default_model', DEFAULT_MODEL_ID)

        # Unknown model ids fail here, before any document is touched
        self.llm = llm or LLMProviderFactory.create_for_model(self.model_id, self.config)

        self.classifier = DocumentClassifier(self.llm, self.config)
        self.extractor = DataExtractor(self.llm, self.config)
        self.validator = DataValidator(self.llm, self.config)

        self.save_intermediate = self.config.get('save_intermediate_results', False)
        if self.save_intermediate:
            self.results_dir = Path(self.config.get('results_dir', 'pipeline_results'))
            self.results_dir.mkdir(parents=True, exist_ok=True)
        self.timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")

        self.graph = self._build_graph()

    def _build_graph(self):
        workflow = StateGraph(ParserState)

        workflow.add_node("classifier", self._agent_node("classifier", "extractor", self.classifier.classify))
        workflow.add_node("extractor", self._agent_node("extractor", "validator", self.extractor.extract))
        workflow.add_node("validator", self._agent_node("validator", "complete", self.validator.validate))

        workflow.add_edge(START, "classifier")
        workflow.add_edge("classifier", "extractor")
        workflow.add_edge("extractor", "validator")
        workflow.add_edge("validator", END)

        return workflow.compile()

    def _agent_node(self, agent: str, next_agent: str, stage: StageFn) -> StageFn:
        """Wrap a stage so currentAgent names the owner during and after the call"""
        def node(state: ParserState) -> ParserState:
            logger.info(f"[{agent.capitalize()}] Starting {agent}")
            new_state = stage({**state, "currentAgent": agent})
            self._save_intermediate_result(agent, new_state)
            return {**new_state, "currentAgent": next_agent}

        return node

    def _save_intermediate_result(self, agent: str, state: ParserState) -> None:
        """Save a stage's output state to the results directory"""
        if not self.save_intermediate:
            return

        output_path = self.results_dir / f"{self.timestamp}_stage_{agent}.json"
        snapshot = {key: value for key, value in state.items() if key != "rawText"}
        try:
            with open(output_path, 'w', encoding='utf-8') as f:
                json.dump(snapshot, f, indent=2, ensure_ascii=False, default=str)
            logger.debug(f"Saved intermediate result to: {output_path}")
        except OSError as e:
            logger.warning(f"Error saving intermediate result: {e}")

    def parse_document(self, raw_text: str) -> ParserState:
        """Run the raw document text through all three agents"""
        logger.info(f"[Parser] Starting document parsing with model: {self.model_id}")
        result = self.graph.invoke(create_initial_state(raw_text))
        logger.info(
            f"[Parser] Completed with confidence: {result['confidence']}, errors: {len(result['errors'])}"
        )
        return result


def parse_document(raw_text: str, model_id: Optional[str] = None,
                   config: Optional[Dict[str, Any]] = None,
                   llm: Optional[BaseLLMProvider] = None) -> ParserState:
    """Parse one document with a freshly built pipeline"""
    return DocumentParserPipeline(config, model_id=model_id, llm=llm).parse_document(raw_text)
