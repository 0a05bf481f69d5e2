from netstrat.matrix.adj_matrix import AdjMatrix, LRUCache, MatrixElements

__all__ = ["AdjMatrix", "LRUCache", "MatrixElements"]
