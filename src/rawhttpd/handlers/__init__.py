"""
Request handlers.

A handler is any callable `handler(request) -> HTTPResponse`. Register it
on a RouteTable under a path prefix:

    routes = RouteTable()
    routes.register("/hello", hello)

    @routes.route("/time")
    @html_handler
    def now(request):
        return f"<p>{time.ctime()}</p>"
"""

from .pages import html_handler, hello, fallback, not_found_handler, default_routes

__all__ = [
    "html_handler",
    "hello",
    "fallback",
    "not_found_handler",
    "default_routes",
]
