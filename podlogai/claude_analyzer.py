"""
Claude AI integration for log insights
Turns the rule-based report into prose findings and recommendations
"""

import asyncio
from typing import List
import structlog
from anthropic import AsyncAnthropic

from .classifier import ClassificationResult
from .log_collector import LogEntry
from .reporting import generate_detailed_report

logger = structlog.get_logger(__name__)

ANALYSIS_PROMPT = """You are an expert in analyzing Kubernetes logs. Your goal is to analyze the given log data, identify patterns, detect anomalies, and summarize insights clearly. Pay attention to the context provided in the logs, and focus on:
1. **Errors and Warnings:** Highlight critical issues, error messages, or warnings that may indicate failures in the Kubernetes system or its components.
2. **Patterns and Trends:** Look for repetitive entries, trends, or sequences that might indicate systemic issues or misconfigurations.
3. **System Events:** Summarize key system events such as service startups, shutdowns, restarts, or resource state changes.
4. **Performance Issues:** Identify potential bottlenecks, timeouts, or latency-related concerns.
5. **Suggestions:** Provide actionable recommendations for resolving detected issues or improving stability and performance.

Format your response in Markdown:
* **Summary of Key Events:** major activities or noteworthy occurrences
* **Detected Issues and Errors:** analysis of errors, anomalies, or potential issues
* **Pattern Observations:** recurring patterns or trends
* **Actionable Recommendations:** specific steps to address the issues identified"""


class InsightGenerationError(Exception):
    """Claude did not return usable insights"""


def _format_excerpt(entries: List[LogEntry]) -> str:
    return "\n".join(
        f"{e.timestamp_str} | {e.namespace} | {e.pod_name} | {e.content}" for e in entries
    )


def build_focused_logs(result: ClassificationResult, max_chars: int = 10000) -> str:
    """
    Combine the detailed report with the critical and performance excerpts

    The text is cut to max_chars so a noisy namespace cannot blow the
    request size.
    """
    focused_logs = (
        f"Detailed Report:\n{generate_detailed_report(result)}\n\n"
        f"Critical Events:\n{_format_excerpt(result.critical_events)}\n\n"
        f"Performance Issues:\n{_format_excerpt(result.performance_issues)}"
    )

    if len(focused_logs) > max_chars:
        focused_logs = focused_logs[:max_chars]

    return focused_logs


class ClaudeInsightGenerator:
    """Claude AI-powered insight generator"""

    def __init__(self,
                 api_key: str,
                 model: str = "claude-3-5-sonnet-20241022",
                 max_tokens: int = 750,
                 temperature: float = 0.1,
                 timeout_seconds: float = 30.0,
                 max_input_chars: int = 10000):
        """
        Initialize the insight generator

        Args:
            api_key: Anthropic API key
            model: Claude model to use
            max_tokens: Maximum tokens in the generated insights
            temperature: Model temperature (0.0 = deterministic, 1.0 = creative)
            timeout_seconds: Deadline for a single request
            max_input_chars: Truncation limit for the prompt payload
        """
        if not api_key:
            raise ValueError("Claude API key is required. Set ANTHROPIC_API_KEY environment variable or configure in YAML.")

        self.client = AsyncAnthropic(api_key=api_key)
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout_seconds = timeout_seconds
        self.max_input_chars = max_input_chars

        logger.info("Initialized Claude insight generator", model=model, max_tokens=max_tokens)

    async def _make_claude_request(self, system_prompt: str, user_prompt: str) -> str:
        """Make request to Claude API and return the concatenated text blocks"""
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            system=system_prompt,
            messages=[
                {"role": "user", "content": user_prompt}
            ]
        )

        parts = [getattr(block, "text", "") for block in response.content or []]
        return "".join(parts)

    async def generate_insights(self, result: ClassificationResult) -> str:
        """
        Ask Claude for strategic insights about a classified batch

        Raises:
            InsightGenerationError: on timeout, API failure or an empty reply
        """
        focused_logs = build_focused_logs(result, self.max_input_chars)
        user_prompt = (
            "Analyze the following Kubernetes log analysis and provide strategic "
            f"insights and recommendations:\n\n{focused_logs}"
        )

        logger.info("Requesting insights",
                    payload_chars=len(focused_logs),
                    critical_events=len(result.critical_events),
                    performance_issues=len(result.performance_issues))

        try:
            insights = await asyncio.wait_for(
                self._make_claude_request(ANALYSIS_PROMPT, user_prompt),
                timeout=self.timeout_seconds
            )
        except asyncio.TimeoutError as e:
            logger.error("Claude API request timed out", timeout=self.timeout_seconds)
            raise InsightGenerationError(
                f"insight generation timed out after {self.timeout_seconds:g}s"
            ) from e
        except Exception as e:
            logger.error("Claude API request failed", error=str(e))
            raise InsightGenerationError(f"failed to generate insights: {e}") from e

        if not insights.strip():
            raise InsightGenerationError("no insights generated")

        return insights
