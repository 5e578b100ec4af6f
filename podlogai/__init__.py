"""
Pod Log AI
Concurrent Kubernetes pod log retrieval, rule-based classification and Claude-powered insights
"""

__version__ = "0.1.0"
__author__ = "Pod Log AI Team"
__description__ = "Snapshot, classify and explain Kubernetes container logs"
