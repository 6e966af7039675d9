import logging

import numpy as np
from sklearn.feature_extraction.text import TfidfVectorizer
from sklearn.metrics.pairwise import cosine_similarity

logger = logging.getLogger(__name__)


def product_text(record):
    """Combine all searchable text of a catalog record"""
    return " ".join(
        str(record.get(column, "") or "")
        for column in ("Item Name", "Brand", "Category", "Description", "Tags", "SKU")
    )


class IntelligentSearch:
    """TF-IDF ranking over catalog records.

    The vectorizer is refitted only when the record set changes, so repeated
    searches against an unchanged worksheet reuse the same matrix.
    """

    def __init__(self, max_features=2000):
        self.max_features = max_features
        self.vectorizer = None
        self.inventory_embeddings = None
        self._fingerprint = None

    def refresh_inventory(self, records):
        """Regenerate embeddings when the records differ from the last fit"""
        fingerprint = tuple(product_text(record) for record in records)
        if fingerprint == self._fingerprint:
            return

        self.vectorizer = TfidfVectorizer(stop_words="english", max_features=self.max_features)
        try:
            self.inventory_embeddings = self.vectorizer.fit_transform(fingerprint)
        except ValueError:
            # empty vocabulary: nothing searchable in the sheet
            self.vectorizer = None
            self.inventory_embeddings = None
        self._fingerprint = fingerprint
        logger.debug("Initialized TF-IDF embeddings for %d products", len(records))

    def score(self, query, records):
        """Cosine similarity of the query against every record, in record order"""
        self.refresh_inventory(records)
        if self.vectorizer is None or not records:
            return np.zeros(len(records))
        query_embedding = self.vectorizer.transform([query])
        return cosine_similarity(query_embedding, self.inventory_embeddings).flatten()

    def search_products(self, query, records, max_results=10, similarity_threshold=0.1):
        """Records ranked by similarity, as (record, score) pairs above the threshold"""
        similarities = self.score(query, records)
        # stable sort keeps sheet order among equal scores
        sorted_indices = np.argsort(-similarities, kind="stable")

        results = []
        for idx in sorted_indices:
            similarity_score = float(similarities[idx])
            if similarity_score < similarity_threshold:
                break
            results.append((records[idx], similarity_score))
            if len(results) >= max_results:
                break
        return results

    def find_similar_products(self, target, records, max_results=3):
        """Records most similar to `target`, excluding the target itself"""
        if not records:
            return []
        candidates = [record for record in records if record is not target]
        ranked = self.search_products(product_text(target), candidates,
                                      max_results=max_results, similarity_threshold=0.05)
        return [record for record, _ in ranked]
