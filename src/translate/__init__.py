"""Phrase-to-SQL translation.

The translator converts a short English phrase into a single SQL statement for one table using a
fixed, ordered table of regular-expression rules. It never fails: unknown phrases fall back to a
sample query plus an advisory warning.
"""
