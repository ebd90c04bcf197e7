from inkpress.clients.blog_client import BlogClient

__all__ = ["BlogClient"]
