"""
Core analysis engine that wires retrieval, classification and insight generation together
"""

from dataclasses import dataclass
from typing import Callable, Dict, Optional
import structlog

from .config import AppConfig
from .log_collector import ClusterClient, KubectlClusterClient
from .log_store import LogStore
from .retrieval import RetrievalOrchestrator, RetrievalSummary
from .classifier import LogClassifier, ClassificationResult
from .claude_analyzer import ClaudeInsightGenerator
from .reporting import generate_detailed_report

logger = structlog.get_logger(__name__)


@dataclass
class AnalysisRun:
    """Everything produced by one pass over a namespace"""

    summary: RetrievalSummary
    result: ClassificationResult
    report: str
    insights: Optional[str] = None


class LogAnalysisEngine:
    """Main analysis engine that coordinates log retrieval and analysis"""

    def __init__(self,
                 config: AppConfig,
                 cluster: Optional[ClusterClient] = None,
                 insight_generator: Optional[ClaudeInsightGenerator] = None,
                 on_error: Optional[Callable[[str], None]] = None):
        """
        Initialize the analysis engine

        Args:
            config: Application configuration
            cluster: Cluster client (kubectl-backed by default)
            insight_generator: Claude client (built from config on first use by default)
            on_error: Sink for non-fatal retrieval errors
        """
        self.config = config

        self.cluster = cluster or KubectlClusterClient(
            kubeconfig_path=config.cluster.kubeconfig_path,
            context=config.cluster.context,
            kubectl_path=config.cluster.kubectl_path
        )
        self.store = LogStore()
        self.orchestrator = RetrievalOrchestrator(
            self.cluster,
            self.store,
            max_concurrency=config.retrieval.max_concurrency,
            queue_size=config.retrieval.queue_size,
            on_error=on_error
        )
        self.classifier = LogClassifier()
        self._insight_generator = insight_generator

        logger.info("Initialized log analysis engine",
                    max_concurrency=config.retrieval.max_concurrency,
                    model=config.claude.model)

    @property
    def insight_generator(self) -> ClaudeInsightGenerator:
        if self._insight_generator is None:
            claude = self.config.claude
            self._insight_generator = ClaudeInsightGenerator(
                api_key=claude.api_key,
                model=claude.model,
                max_tokens=claude.max_tokens,
                temperature=claude.temperature,
                timeout_seconds=claude.timeout_seconds,
                max_input_chars=claude.max_input_chars
            )
        return self._insight_generator

    async def collect_logs(self,
                           namespace: str,
                           pod: Optional[str] = None,
                           container: Optional[str] = None) -> RetrievalSummary:
        """Retrieve logs into the engine's store"""
        return await self.orchestrator.retrieve(namespace, pod, container)

    def analyze(self) -> ClassificationResult:
        """Classify a snapshot of everything collected so far"""
        result = self.classifier.classify(self.store.snapshot())
        logger.info("Classified logs",
                    total=result.total_entries,
                    errors=result.error_count,
                    warnings=result.warning_count,
                    critical_events=len(result.critical_events),
                    performance_issues=len(result.performance_issues))
        return result

    async def generate_insights(self, result: ClassificationResult) -> str:
        return await self.insight_generator.generate_insights(result)

    async def run_analysis(self,
                           namespace: str,
                           pod: Optional[str] = None,
                           container: Optional[str] = None,
                           insights: bool = True) -> AnalysisRun:
        """
        Run a full retrieval and analysis cycle on an emptied store

        Args:
            namespace: Namespace to snapshot
            pod: Restrict to one pod
            container: Restrict to one container in each pod
            insights: Ask Claude for prose insights after classifying

        Returns:
            AnalysisRun with the retrieval summary, classification and report
        """
        self.reset()
        summary = await self.collect_logs(namespace, pod, container)
        result = self.analyze()
        run = AnalysisRun(
            summary=summary,
            result=result,
            report=generate_detailed_report(result)
        )

        if insights:
            run.insights = await self.generate_insights(result)

        return run

    async def test_connections(self) -> Dict[str, bool]:
        """Test connections to Kubernetes and, when a key is configured, Claude"""
        results = {'kubernetes': await self.cluster.test_connection()}

        if self._insight_generator is not None or self.config.claude.api_key:
            try:
                await self.generate_insights(ClassificationResult())
                results['claude'] = True
            except Exception as e:
                logger.error("Claude API connection test failed", error=str(e))
                results['claude'] = False

        return results

    def reset(self):
        """Drop collected logs so the engine can be reused"""
        self.store.clear()
