"""Catalogue of services, endpoints, network pairs and code targets for chaos experiments."""

__version__ = "0.1.0"
__all__ = [
    "naming",
    "serviceendpoints",
    "networkdependencies",
    "resourcelookup",
    "clickhouse",
    "datagenerator",
    "javaanalyzer",
    "javadatagenerator",
]