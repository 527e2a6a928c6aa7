"""
Static files committed next to the generated index.html
"""
from datetime import datetime, timezone
from typing import List, Optional

from pages_builder.core.model import FileContent


MIT_LICENSE = """MIT License

Copyright (c) {year} {author}

Permission is hereby granted, free of charge, to any person obtaining a copy
of this software and associated documentation files (the "Software"), to deal
in the Software without restriction, including without limitation the rights
to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
copies of the Software, and to permit persons to whom the Software is
furnished to do so, subject to the following conditions:

The above copyright notice and this permission notice shall be included in all
copies or substantial portions of the Software.

THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN THE
SOFTWARE.
"""


def pages_url(owner: str, repo_name: str) -> str:
    return f"https://{owner}.github.io/{repo_name}/"


def readme_content(repo_name: str, brief: str, owner: str) -> str:
    return f"""# {repo_name}

## Summary
This repository was auto-generated based on the following brief: "{brief}". It contains a single-page web application.

## Setup & Usage
1.  No setup is required.
2.  The application is hosted using GitHub Pages.
3.  You can visit the live application at: {pages_url(owner, repo_name)}

## Code Explanation
The `index.html` file contains the complete application. It's a self-contained file with HTML for structure, Tailwind CSS for styling, and JavaScript for interactivity.

## License
This project is licensed under the MIT License. See the `LICENSE` file for details.
"""


def license_content(author: str, year: Optional[int] = None) -> str:
    return MIT_LICENSE.format(year=year or datetime.now(timezone.utc).year, author=author)


def build_artifact_set(repo_name: str, brief: str, app_html: str, owner: str) -> List[FileContent]:
    """
    Ordered files of one task: the app first, then README.md and LICENSE.

    Example:
        >>> [f.path for f in build_artifact_set("t1", "todo app", "<!DOCTYPE html>", "octocat")]
        ['index.html', 'README.md', 'LICENSE']
    """
    return [
        FileContent(path="index.html", content=app_html),
        FileContent(path="README.md", content=readme_content(repo_name, brief, owner)),
        FileContent(path="LICENSE", content=license_content(owner)),
    ]
