"""
Main entry point for Pod Log AI
Provides CLI interface and orchestrates the retrieval and analysis workflow
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional
import click
import structlog
from rich.console import Console

from .config import load_config, save_example_config, AppConfig
from .analysis_engine import LogAnalysisEngine, AnalysisRun
from .claude_analyzer import ClaudeInsightGenerator, InsightGenerationError
from .log_collector import ClusterClient
from .reporting import ReportingSystem
from .retrieval import PodListingError

logger = structlog.get_logger(__name__)
console = Console()

USAGE_EXAMPLES = """Usage examples:
  podlogai analyze --kubeconfig=/path/to/config --namespace my-namespace
  podlogai analyze --kubeconfig=/path/to/config --namespace my-namespace --pod my-pod
  podlogai analyze --kubeconfig=/path/to/config --namespace my-namespace --pod my-pod --container my-container"""


def configure_logging(log_level: str = "INFO", json_logs: bool = True):
    """Configure structlog on top of stdlib logging, writing to stderr"""
    level = getattr(logging, log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(message)s", stream=sys.stderr)

    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso", key="timestamp"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def validate_input_combinations(namespace: str, pod: str, container: str):
    """Reject filter combinations that cannot be resolved"""
    if not namespace and not pod and not container:
        raise ValueError(
            "no parameters specified. Please provide at least a namespace.\n\n" + USAGE_EXAMPLES
        )

    if container and (not pod or not namespace):
        raise ValueError(
            "container must be specified with both a pod and a namespace. For example:\n"
            "  --namespace my-namespace --pod my-pod --container my-container"
        )

    if pod and not namespace:
        raise ValueError(
            "pod must be specified with a namespace. For example:\n"
            "  --namespace my-namespace --pod my-pod"
        )


class PodLogApp:
    """Main application class"""

    def __init__(self,
                 config: AppConfig,
                 cluster: Optional[ClusterClient] = None,
                 insight_generator: Optional[ClaudeInsightGenerator] = None,
                 output: Optional[Console] = None):
        self.config = config
        self.console = output or console
        self.reporter = ReportingSystem(self.console)
        self.engine = LogAnalysisEngine(
            config,
            cluster=cluster,
            insight_generator=insight_generator,
            on_error=self.reporter.print_error
        )

    async def run_analysis(self,
                           namespace: str,
                           pod: Optional[str] = None,
                           container: Optional[str] = None,
                           print_raw: bool = False,
                           report_only: bool = False) -> AnalysisRun:
        """Retrieve, classify and present logs for one namespace"""
        self.console.print(f"[bold blue]🚀 Retrieving logs from namespace {namespace}...[/bold blue]")

        run = await self.engine.run_analysis(
            namespace, pod, container,
            insights=not (print_raw or report_only)
        )

        if print_raw:
            self.reporter.print_raw_logs(self.engine.store.snapshot())
            return run

        self.reporter.display_retrieval_summary(run.summary)

        if run.insights is not None:
            self.reporter.render_insights(run.insights)
        else:
            self.reporter.display_report(run.report)

        return run

    async def test_connections(self) -> bool:
        """Test all connections"""
        self.console.print("[bold blue]🔧 Testing connections...[/bold blue]")

        connections = await self.engine.test_connections()

        for service, connected in connections.items():
            status_icon = "✅" if connected else "❌"
            status_text = "Connected" if connected else "Failed"
            color = "green" if connected else "red"

            self.console.print(f"{status_icon} {service.title()}: [{color}]{status_text}[/{color}]")

        all_connected = all(connections.values())

        if all_connected:
            self.console.print("[bold green]✅ All connections successful![/bold green]")
        else:
            self.console.print("[bold red]❌ Some connections failed. Check your configuration.[/bold red]")

        return all_connected


# CLI Commands

@click.group()
@click.option('--config', '-c', type=click.Path(exists=True),
              help='Path to configuration file')
@click.option('--debug', is_flag=True, help='Enable debug mode')
@click.pass_context
def cli(ctx, config, debug):
    """Pod Log AI - snapshot, classify and explain Kubernetes container logs"""
    try:
        app_config = load_config(config)
    except Exception as e:
        console.print(f"[red]❌ Configuration error: {str(e)}[/red]")
        console.print("💡 Try running 'podlogai init-config' to create a sample configuration.")
        sys.exit(1)

    if debug:
        app_config.debug = True

    # debug may also come from the config file or PODLOGAI_DEBUG
    if app_config.debug:
        app_config.log_level = "DEBUG"

    configure_logging(app_config.log_level, app_config.json_logs)

    ctx.ensure_object(dict)
    ctx.obj['config'] = app_config


@cli.command()
@click.option('--output', '-o', type=click.Path(), default='config/config.example.yaml',
              help='Output path for example configuration')
def init_config(output):
    """Generate example configuration file"""
    try:
        Path(output).parent.mkdir(parents=True, exist_ok=True)
        save_example_config(output)
    except OSError as e:
        console.print(f"[red]❌ Failed to create configuration: {str(e)}[/red]")
        sys.exit(1)

    console.print(f"[green]✅ Example configuration saved to {output}[/green]")
    console.print("💡 Copy this file to config.yaml and customize for your environment.")


@cli.command()
@click.pass_context
def test(ctx):
    """Test connections to Kubernetes and Claude API"""
    app = PodLogApp(ctx.obj['config'])

    success = asyncio.run(app.test_connections())
    sys.exit(0 if success else 1)


@cli.command()
@click.option('--namespace', '-n', default='', help='Kubernetes namespace')
@click.option('--pod', '-p', default='', help='Specific pod name')
@click.option('--container', default='', help='Specific container name')
@click.option('--kubeconfig', type=click.Path(), default=None, help='Path to kubeconfig file')
@click.option('--context', 'kube_context', default=None, help='Kubernetes context to use')
@click.option('--print-raw', is_flag=True, help='Print retrieved logs instead of analysing them')
@click.option('--report-only', is_flag=True, help='Print the rule-based report without calling Claude')
@click.pass_context
def analyze(ctx, namespace, pod, container, kubeconfig, kube_context, print_raw, report_only):
    """Retrieve and analyse logs from a namespace, pod or container"""
    try:
        validate_input_combinations(namespace, pod, container)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        sys.exit(1)

    config = ctx.obj['config']
    if kubeconfig:
        config.cluster.kubeconfig_path = kubeconfig
    if kube_context:
        config.cluster.context = kube_context

    async def run_analysis():
        try:
            app = PodLogApp(config)
            await app.run_analysis(
                namespace, pod or None, container or None,
                print_raw=print_raw, report_only=report_only
            )
            return True
        except PodListingError as e:
            console.print(f"[red]❌ Log retrieval failed: {str(e)}[/red]")
        except (InsightGenerationError, ValueError) as e:
            console.print(f"[red]❌ Log analysis failed: {str(e)}[/red]")
        return False

    success = asyncio.run(run_analysis())
    sys.exit(0 if success else 1)


def main():
    """Main entry point"""
    try:
        cli()
    except KeyboardInterrupt:
        console.print("\n[yellow]👋 Goodbye![/yellow]")
        sys.exit(0)


if __name__ == "__main__":
    main()
