"""Aggregation of contacts into counselor × month × type counts.

`build_gold`/`load_gold` materialize the precomputed snapshot in MongoDB,
`fold` does the same grouping in-process for the raw fallback, and
`resolver` chooses between the two at report time.
"""
