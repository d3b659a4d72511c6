"""
online clustering of split read breakpoints into structural variant calls
"""
from .cluster import Cluster, ClusterEngine, ConsensusCall

__all__ = ['Cluster', 'ClusterEngine', 'ConsensusCall']
