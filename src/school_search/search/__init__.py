"""School search pipeline.

Modules:
- fuzzy: edit distance and 0-100 text similarity
- query_parser: split a free-text query into name, city and state
- relevance: weighted similarity plus bonuses per candidate
- strategies: plan and run the directory queries for one search
- ranking: deduplicate and order the merged candidates
"""
