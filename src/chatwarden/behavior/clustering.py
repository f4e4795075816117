"""
Near-duplicate clustering over message fingerprints.

Similarity between two semantic hashes is the share of equal characters at
equal positions over the shorter hash. For md5 hex digests this behaves like
an exact-match test with a little noise; it is fast but not a real semantic
measure. Each call either updates the best matching cluster or creates a
new one, never both.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Callable, Dict, List, Tuple

from chatwarden.datatypes.analysis_datatypes import ContentAnalysisResult, ContentSimilarity
from chatwarden.datatypes.behavior_datatypes import ClusterAnalysis, ClusterType, ContentCluster
from chatwarden.util.logger import get_logger
from chatwarden.util.time_utils import new_id, utcnow

logger = get_logger("content_clustering")

DUPLICATE_THRESHOLD = 80.0
UPDATE_THRESHOLD = 70.0
INFERRED_TYPE_THRESHOLD = 50


def hash_similarity(first: str, second: str) -> float:
    """Character-position overlap of two hashes, as a percentage."""
    shortest = min(len(first), len(second))
    if shortest == 0:
        return 0.0
    matches = sum(1 for index in range(shortest) if first[index] == second[index])
    return matches / shortest * 100


def infer_cluster_type(analysis: ContentAnalysisResult | None) -> ClusterType:
    if analysis is None:
        return ClusterType.UNKNOWN
    if analysis.spam_score >= INFERRED_TYPE_THRESHOLD or analysis.scam_score >= INFERRED_TYPE_THRESHOLD:
        return ClusterType.SPAM
    if analysis.promotional_score >= INFERRED_TYPE_THRESHOLD:
        return ClusterType.PROMOTIONAL
    return ClusterType.UNKNOWN


class ContentClusterIndex:
    """In-process map of content clusters.

    All methods are synchronous, so on a single event loop a read-then-write
    inside :meth:`assign` cannot interleave with another message.
    """

    def __init__(
        self,
        spam_min_messages: int = 5,
        spam_min_authors: int = 3,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._clusters: Dict[str, ContentCluster] = {}
        self._spam_min_messages = spam_min_messages
        self._spam_min_authors = spam_min_authors
        self._clock = clock

    def __len__(self) -> int:
        return len(self._clusters)

    def get(self, cluster_id: str) -> ContentCluster | None:
        return self._clusters.get(cluster_id)

    def clusters(self) -> List[ContentCluster]:
        return list(self._clusters.values())

    def best_match(self, semantic_hash: str) -> Tuple[ContentCluster | None, float]:
        best: ContentCluster | None = None
        best_score = 0.0
        for cluster in self._clusters.values():
            for known_hash in cluster.semantic_hashes:
                score = hash_similarity(semantic_hash, known_hash)
                if score > best_score:
                    best, best_score = cluster, score
        return best, best_score

    def assign(
        self,
        fingerprint: ContentSimilarity,
        author_id: str,
        analysis: ContentAnalysisResult | None = None,
    ) -> ClusterAnalysis:
        """Place a fingerprint into a cluster and report how it matched."""
        best, score = self.best_match(fingerprint.semantic_hash)
        is_duplicate = score > DUPLICATE_THRESHOLD

        if best is not None and score >= UPDATE_THRESHOLD:
            cluster = self._update(best, fingerprint, author_id)
        else:
            cluster = self._create(fingerprint, author_id, infer_cluster_type(analysis))

        return ClusterAnalysis(
            is_duplicate=is_duplicate,
            cluster_id=cluster.cluster_id,
            cluster_type=cluster.cluster_type,
            similarity_score=round(score, 2),
        )

    def classify(self, cluster_id: str, cluster_type: ClusterType) -> bool:
        """Set a cluster's type from moderator feedback. Returns False if the cluster is gone."""
        cluster = self._clusters.get(cluster_id)
        if cluster is None:
            return False
        if cluster.cluster_type is cluster_type:
            cluster.confidence = min(100, cluster.confidence + 10)
        else:
            cluster.cluster_type = cluster_type
            cluster.confidence = 60
        logger.debug("[CLUSTERS] Cluster %s classified as %s", cluster_id, cluster_type)
        return True

    def find_by_content_hash(self, content_hash: str) -> ContentCluster | None:
        for cluster in self._clusters.values():
            if content_hash in cluster.content_hashes:
                return cluster
        return None

    def prune_idle(self, max_idle_seconds: float) -> int:
        """Drop clusters that have not seen a message for ``max_idle_seconds``."""
        cutoff = self._clock() - timedelta(seconds=max_idle_seconds)
        idle = [cluster_id for cluster_id, cluster in self._clusters.items() if cluster.last_seen < cutoff]
        for cluster_id in idle:
            del self._clusters[cluster_id]
        return len(idle)

    def _update(self, cluster: ContentCluster, fingerprint: ContentSimilarity, author_id: str) -> ContentCluster:
        cluster.content_hashes.append(fingerprint.content_hash)
        cluster.semantic_hashes.append(fingerprint.semantic_hash)
        cluster.author_ids.add(author_id)
        cluster.message_count += 1
        cluster.last_seen = self._clock()

        if (
            cluster.cluster_type is not ClusterType.SPAM
            and cluster.cluster_type is not ClusterType.LEGITIMATE
            and cluster.message_count >= self._spam_min_messages
            and cluster.unique_authors >= self._spam_min_authors
        ):
            cluster.cluster_type = ClusterType.SPAM
            cluster.confidence = max(cluster.confidence, 70)
            logger.info(
                "[CLUSTERS] Cluster %s marked as spam (%d messages from %d authors)",
                cluster.cluster_id, cluster.message_count, cluster.unique_authors,
            )
        return cluster

    def _create(self, fingerprint: ContentSimilarity, author_id: str, cluster_type: ClusterType) -> ContentCluster:
        now = self._clock()
        cluster = ContentCluster(
            cluster_id=new_id(),
            content_hashes=[fingerprint.content_hash],
            semantic_hashes=[fingerprint.semantic_hash],
            cluster_type=cluster_type,
            first_seen=now,
            last_seen=now,
            author_ids={author_id},
        )
        self._clusters[cluster.cluster_id] = cluster
        return cluster
