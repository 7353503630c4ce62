"""
Cluster Codex - guarded remediation plans for Kubernetes health findings.

Ingests k8sgpt findings, scopes them to what each operator may see, and turns
a selected finding into a remediation plan produced by an AI assistant, with
sensitive text redacted before it leaves the process.
"""

__version__ = "0.1.0"
__author__ = "Cluster Codex Contributors"
