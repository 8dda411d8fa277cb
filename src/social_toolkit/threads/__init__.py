from social_toolkit.threads.assembler import ThreadedComment, assemble_thread, display_depth, find_orphans

__all__ = ["ThreadedComment", "assemble_thread", "display_depth", "find_orphans"]
