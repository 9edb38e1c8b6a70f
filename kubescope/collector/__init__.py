"""Collector package for kubescope.

Fetchers that read cluster state from external collaborators.  Each call is
independent, may fail independently, and reports failure as ``FetchError``.

Submodules
----------
kubernetes -- KubernetesFetcher: nodes, pods, services, deployments, node metrics, pod deletion.
prometheus -- PrometheusClient: instant and range PromQL queries over httpx.
quantity   -- Kubernetes resource quantity parsing (memory bytes, CPU millicores).
"""
