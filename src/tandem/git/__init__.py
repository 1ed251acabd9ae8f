# SPDX-FileCopyrightText: 2026 Tandem authors
#
# SPDX-License-Identifier: Apache-2.0

from tandem.git.github import GitHostingClient, GitHubClient

__all__ = ["GitHostingClient", "GitHubClient"]
