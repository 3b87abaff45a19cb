"""
GraphQL documents for the Linear API.

Field selections are shared through fragments so every snapshot decoder sees
the same shape regardless of which query produced it.
"""

ISSUE_PAGE_SIZE = 100

USER_FIELDS = """
fragment UserFields on User {
  id
  name
  email
}
"""

PROJECT_FIELDS = """
fragment ProjectFields on Project {
  id
  name
  description
  state
  progress
  startDate
  targetDate
  url
  lead { ...UserFields }
  teams { nodes { id } }
}
"""

ISSUE_FIELDS = """
fragment IssueFields on Issue {
  id
  identifier
  title
  description
  priority
  dueDate
  url
  state { id name type color }
  assignee { ...UserFields }
  project { id }
  team { id }
}
"""

# -----------------------------------------------------------------------------
# Queries
# -----------------------------------------------------------------------------

GET_VIEWER = """
query GetViewer {
  viewer { ...UserFields }
}
""" + USER_FIELDS

GET_TEAMS = """
query GetLinearTeams {
  teams {
    nodes { id name key description }
  }
}
"""

GET_TEAM_STATES = """
query GetTeamStates($teamId: String!) {
  team(id: $teamId) {
    id
    states { nodes { id name type color } }
  }
}
"""

GET_PROJECT = (
    """
query GetLinearProject($projectId: String!) {
  project(id: $projectId) { ...ProjectFields }
}
"""
    + PROJECT_FIELDS
    + USER_FIELDS
)

GET_PROJECT_ISSUES = (
    """
query GetProjectIssues($projectId: String!, $first: Int!, $after: String) {
  project(id: $projectId) {
    id
    issues(first: $first, after: $after) {
      nodes { ...IssueFields }
      pageInfo { hasNextPage endCursor }
    }
  }
}
"""
    + ISSUE_FIELDS
    + USER_FIELDS
)

GET_ISSUE = (
    """
query GetLinearIssue($issueId: String!) {
  issue(id: $issueId) { ...IssueFields }
}
"""
    + ISSUE_FIELDS
    + USER_FIELDS
)

# -----------------------------------------------------------------------------
# Mutations
# -----------------------------------------------------------------------------

CREATE_PROJECT = (
    """
mutation CreateLinearProject($input: ProjectCreateInput!) {
  projectCreate(input: $input) {
    success
    project { ...ProjectFields }
  }
}
"""
    + PROJECT_FIELDS
    + USER_FIELDS
)

UPDATE_PROJECT = (
    """
mutation UpdateLinearProject($projectId: String!, $input: ProjectUpdateInput!) {
  projectUpdate(id: $projectId, input: $input) {
    success
    project { ...ProjectFields }
  }
}
"""
    + PROJECT_FIELDS
    + USER_FIELDS
)

CREATE_ISSUE = (
    """
mutation CreateLinearIssue($input: IssueCreateInput!) {
  issueCreate(input: $input) {
    success
    issue { ...IssueFields }
  }
}
"""
    + ISSUE_FIELDS
    + USER_FIELDS
)

UPDATE_ISSUE = (
    """
mutation UpdateLinearIssue($issueId: String!, $input: IssueUpdateInput!) {
  issueUpdate(id: $issueId, input: $input) {
    success
    issue { ...IssueFields }
  }
}
"""
    + ISSUE_FIELDS
    + USER_FIELDS
)
