"""
Paper-to-blog generation worker.

Turns a research paper that has been uploaded to a content index into a
draft blog post: it waits for indexing, asks a generation provider for
markdown, converts that markdown into Lexical JSON plus a plain-text
excerpt, and stores the post while keeping the job record's status and
progress current.
"""
