# pokecontact/scheduler.py
"""
Ranks many candidates against one reference without hogging the caller.

Work is cut into chunks of ``batch_size``; the generator computes one chunk
per resumption, so whoever drives it decides when the next slice runs.
"""

from pokecontact import config
from pokecontact.compatibility import compatibility
from pokecontact.logger import log_action


def iter_compatibility_batches(reference, candidates, threshold: int = config.MATCH_THRESHOLD,
                               batch_size: int = config.BATCH_SIZE):
    """Yield, per chunk of candidates, the (candidate, score) pairs scoring >= threshold."""
    if batch_size < 1:
        raise ValueError("batch_size must be >= 1")
    candidates = list(candidates)
    for start in range(0, len(candidates), batch_size):
        chunk = []
        for candidate in candidates[start:start + batch_size]:
            score = compatibility(reference, candidate)
            if score is not None and score >= threshold:
                chunk.append((candidate, score))
        yield chunk


class RankingTask:
    """
    Drives iter_compatibility_batches one chunk per step().

    After the last chunk the collected pairs are sorted by score (descending,
    stable) and delivered once through on_complete / result. cancel() takes
    effect at the next chunk boundary and suppresses delivery.
    """

    def __init__(self, reference, candidates, threshold=config.MATCH_THRESHOLD,
                 batch_size=config.BATCH_SIZE, on_complete=None):
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self.threshold = threshold
        self.batch_size = batch_size
        self.on_complete = on_complete
        self.result = None
        self.cancelled = False
        self.done = False
        self.steps = 0
        self._matches = []
        self._batches = iter_compatibility_batches(reference, candidates, threshold, batch_size)

    def cancel(self):
        self.cancelled = True
        self._batches.close()

    def step(self) -> bool:
        """Process one chunk. Returns True while more work remains."""
        if self.cancelled or self.done:
            return False
        try:
            chunk = next(self._batches)
        except StopIteration:
            self._finish()
            return False
        self.steps += 1
        self._matches.extend(chunk)
        return True

    def _finish(self):
        self.done = True
        if self.cancelled:
            return
        self.result = sorted(self._matches, key=lambda pair: pair[1], reverse=True)
        log_action(f"Ranking finished: {len(self.result)} matches >= {self.threshold} in {self.steps} chunks")
        if self.on_complete is not None:
            self.on_complete(self.result)

    def run(self):
        """Drive every remaining chunk; returns the sorted result (None if cancelled)."""
        while self.step():
            pass
        return self.result

    def __iter__(self):
        # each iteration is one scheduling turn
        while self.step():
            yield self.steps


def rank_by_compatibility(reference, candidates, threshold=config.MATCH_THRESHOLD,
                          batch_size=config.BATCH_SIZE, on_complete=None) -> RankingTask:
    return RankingTask(reference, candidates, threshold, batch_size, on_complete)
