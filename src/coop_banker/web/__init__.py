"""Server-rendered report page and its static assets."""
