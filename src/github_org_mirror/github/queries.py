"""GraphQL documents for the GitHub API.

Top-level issue, pull request and discussion connections are ordered
newest-first by update time so a sync can stop at the first node older than
its lower bound. Child connections (comments, reviews, review threads) come
back in their natural oldest-first order.
"""

STATUS_FIELD_NAME = "Status"

# -----------------------------------------------------------------------------
# Fragments
# -----------------------------------------------------------------------------
ACTOR_FIELDS = """
fragment ActorFields on Actor {
  __typename
  login
  avatarUrl(size: 200)
  ... on User {
    id
    name
    createdAt
    updatedAt
  }
  ... on Organization {
    id
    name
    createdAt
    updatedAt
  }
  ... on Bot {
    id
    createdAt
    updatedAt
  }
  ... on Mannequin {
    id
    createdAt
    updatedAt
  }
}
"""

REQUESTED_REVIEWER_FIELDS = """
fragment RequestedReviewerFields on RequestedReviewer {
  __typename
  ... on User {
    id
    login
    name
    avatarUrl(size: 200)
    createdAt
    updatedAt
  }
  ... on Team {
    id
    name
  }
  ... on Bot {
    id
    login
    avatarUrl(size: 200)
  }
  ... on Mannequin {
    id
    login
    avatarUrl(size: 200)
  }
}
"""

REACTION_FIELDS = """
fragment ReactionFields on Reaction {
  id
  content
  createdAt
  user {
    ...ActorFields
  }
}
"""

REPOSITORY_FIELDS = """
fragment RepositoryFields on Repository {
  id
  databaseId
  name
  nameWithOwner
  url
  isPrivate
  createdAt
  updatedAt
  owner {
    ...ActorFields
  }
}
"""

PROJECT_ITEM_FIELDS = f"""
fragment ProjectItemFields on ProjectV2Item {{
  id
  createdAt
  updatedAt
  project {{
    id
    title
  }}
  status: fieldValueByName(name: "{STATUS_FIELD_NAME}") {{
    __typename
    ... on ProjectV2ItemFieldSingleSelectValue {{
      name
      createdAt
      updatedAt
    }}
    ... on ProjectV2ItemFieldIterationValue {{
      title
      createdAt
      updatedAt
    }}
    ... on ProjectV2ItemFieldTextValue {{
      text
      createdAt
      updatedAt
    }}
    ... on ProjectV2ItemFieldNumberValue {{
      number
      createdAt
      updatedAt
    }}
    ... on ProjectV2ItemFieldDateValue {{
      date
      createdAt
      updatedAt
    }}
  }}
}}
"""

COMMENT_FIELDS = """
fragment CommentFields on Comment {
  id
  author {
    ...ActorFields
  }
  createdAt
  updatedAt
  url
  body
  ... on Reactable {
    reactions(first: 25) {
      nodes {
        ...ReactionFields
      }
    }
  }
}
"""

ISSUE_FIELDS = """
fragment IssueFields on Issue {
  id
  number
  title
  state
  url
  body
  createdAt
  updatedAt
  closedAt
  author {
    ...ActorFields
  }
  assignees(first: 10) {
    nodes {
      ...ActorFields
    }
  }
  reactions(first: 25) {
    nodes {
      ...ReactionFields
    }
  }
  projectItems(first: 10) {
    nodes {
      ...ProjectItemFields
    }
  }
}
"""

PULL_REQUEST_FIELDS = """
fragment PullRequestFields on PullRequest {
  id
  number
  title
  state
  url
  body
  createdAt
  updatedAt
  closedAt
  mergedAt
  merged
  isDraft
  author {
    ...ActorFields
  }
  mergedBy {
    ...ActorFields
  }
  assignees(first: 10) {
    nodes {
      ...ActorFields
    }
  }
  reactions(first: 25) {
    nodes {
      ...ReactionFields
    }
  }
  reviewRequests(first: 25) {
    nodes {
      id
      requestedReviewer {
        ...RequestedReviewerFields
      }
    }
  }
  timelineItems(last: 25, itemTypes: [REVIEW_REQUESTED_EVENT, REVIEW_REQUEST_REMOVED_EVENT]) {
    nodes {
      __typename
      ... on ReviewRequestedEvent {
        id
        createdAt
        requestedReviewer {
          ...RequestedReviewerFields
        }
      }
      ... on ReviewRequestRemovedEvent {
        id
        createdAt
        requestedReviewer {
          ...RequestedReviewerFields
        }
      }
    }
  }
}
"""

DISCUSSION_FIELDS = """
fragment DiscussionFields on Discussion {
  id
  number
  title
  url
  body
  closed
  createdAt
  updatedAt
  closedAt
  answerChosenAt
  author {
    ...ActorFields
  }
  category {
    id
    name
  }
  reactions(first: 25) {
    nodes {
      ...ReactionFields
    }
  }
  answer {
    ...CommentFields
  }
}
"""


def _document(body: str, *fragments: str) -> str:
    """Join an operation with the fragments it spreads."""
    return body + "".join(fragments)


# -----------------------------------------------------------------------------
# Organization
# -----------------------------------------------------------------------------
ORGANIZATION_REPOSITORIES_QUERY = _document(
    """
query OrganizationRepositories($login: String!, $cursor: String, $pageSize: Int!) {
  organization(login: $login) {
    repositories(first: $pageSize, after: $cursor, orderBy: { field: PUSHED_AT, direction: DESC }) {
      pageInfo {
        hasNextPage
        endCursor
      }
      nodes {
        ...RepositoryFields
      }
    }
  }
}
""",
    REPOSITORY_FIELDS,
    ACTOR_FIELDS,
)

# -----------------------------------------------------------------------------
# Repository Connections (newest-first)
# -----------------------------------------------------------------------------
REPOSITORY_ISSUES_QUERY = _document(
    """
query RepositoryIssues($owner: String!, $name: String!, $cursor: String, $pageSize: Int!) {
  repository(owner: $owner, name: $name) {
    issues(first: $pageSize, after: $cursor, orderBy: { field: UPDATED_AT, direction: DESC }) {
      pageInfo {
        hasNextPage
        endCursor
      }
      nodes {
        ...IssueFields
      }
    }
  }
}
""",
    ISSUE_FIELDS,
    PROJECT_ITEM_FIELDS,
    REACTION_FIELDS,
    ACTOR_FIELDS,
)

REPOSITORY_PULL_REQUESTS_QUERY = _document(
    """
query RepositoryPullRequests($owner: String!, $name: String!, $cursor: String, $pageSize: Int!) {
  repository(owner: $owner, name: $name) {
    pullRequests(first: $pageSize, after: $cursor, orderBy: { field: UPDATED_AT, direction: DESC }) {
      pageInfo {
        hasNextPage
        endCursor
      }
      nodes {
        ...PullRequestFields
      }
    }
  }
}
""",
    PULL_REQUEST_FIELDS,
    REQUESTED_REVIEWER_FIELDS,
    REACTION_FIELDS,
    ACTOR_FIELDS,
)

REPOSITORY_DISCUSSIONS_QUERY = _document(
    """
query RepositoryDiscussions($owner: String!, $name: String!, $cursor: String, $pageSize: Int!) {
  repository(owner: $owner, name: $name) {
    discussions(first: $pageSize, after: $cursor, orderBy: { field: UPDATED_AT, direction: DESC }) {
      pageInfo {
        hasNextPage
        endCursor
      }
      nodes {
        ...DiscussionFields
      }
    }
  }
}
""",
    DISCUSSION_FIELDS,
    COMMENT_FIELDS,
    REACTION_FIELDS,
    ACTOR_FIELDS,
)

OPEN_ISSUES_QUERY = _document(
    """
query OpenIssues($owner: String!, $name: String!, $cursor: String, $pageSize: Int!) {
  repository(owner: $owner, name: $name) {
    issues(first: $pageSize, after: $cursor, states: OPEN, orderBy: { field: UPDATED_AT, direction: DESC }) {
      pageInfo {
        hasNextPage
        endCursor
      }
      nodes {
        id
        number
        assignees(first: 10) {
          nodes {
            ...ActorFields
          }
        }
      }
    }
  }
}
""",
    ACTOR_FIELDS,
)

OPEN_PULL_REQUESTS_QUERY = _document(
    """
query OpenPullRequests($owner: String!, $name: String!, $cursor: String, $pageSize: Int!) {
  repository(owner: $owner, name: $name) {
    pullRequests(first: $pageSize, after: $cursor, states: OPEN, orderBy: { field: UPDATED_AT, direction: DESC }) {
      pageInfo {
        hasNextPage
        endCursor
      }
      nodes {
        id
        number
        assignees(first: 10) {
          nodes {
            ...ActorFields
          }
        }
        reviewRequests(first: 25) {
          nodes {
            id
            requestedReviewer {
              ...RequestedReviewerFields
            }
          }
        }
      }
    }
  }
}
""",
    REQUESTED_REVIEWER_FIELDS,
    ACTOR_FIELDS,
)

# -----------------------------------------------------------------------------
# Child Connections (oldest-first)
# -----------------------------------------------------------------------------
ISSUE_COMMENTS_QUERY = _document(
    """
query IssueComments($owner: String!, $name: String!, $number: Int!, $cursor: String) {
  repository(owner: $owner, name: $name) {
    issue(number: $number) {
      comments(first: 50, after: $cursor) {
        pageInfo {
          hasNextPage
          endCursor
        }
        nodes {
          ...CommentFields
        }
      }
    }
  }
}
""",
    COMMENT_FIELDS,
    REACTION_FIELDS,
    ACTOR_FIELDS,
)

PULL_REQUEST_COMMENTS_QUERY = _document(
    """
query PullRequestComments($owner: String!, $name: String!, $number: Int!, $cursor: String) {
  repository(owner: $owner, name: $name) {
    pullRequest(number: $number) {
      comments(first: 100, after: $cursor) {
        pageInfo {
          hasNextPage
          endCursor
        }
        nodes {
          ...CommentFields
        }
      }
    }
  }
}
""",
    COMMENT_FIELDS,
    REACTION_FIELDS,
    ACTOR_FIELDS,
)

DISCUSSION_COMMENTS_QUERY = _document(
    """
query DiscussionComments($owner: String!, $name: String!, $number: Int!, $cursor: String) {
  repository(owner: $owner, name: $name) {
    discussion(number: $number) {
      comments(first: 50, after: $cursor) {
        pageInfo {
          hasNextPage
          endCursor
        }
        nodes {
          ...CommentFields
          replies(first: 50) {
            nodes {
              ...CommentFields
            }
          }
        }
      }
    }
  }
}
""",
    COMMENT_FIELDS,
    REACTION_FIELDS,
    ACTOR_FIELDS,
)

PULL_REQUEST_REVIEWS_QUERY = _document(
    """
query PullRequestReviews($owner: String!, $name: String!, $number: Int!, $cursor: String) {
  repository(owner: $owner, name: $name) {
    pullRequest(number: $number) {
      reviews(first: 50, after: $cursor) {
        pageInfo {
          hasNextPage
          endCursor
        }
        nodes {
          id
          author {
            ...ActorFields
          }
          submittedAt
          state
          body
          url
        }
      }
    }
  }
}
""",
    ACTOR_FIELDS,
)

PULL_REQUEST_REVIEW_COMMENTS_QUERY = _document(
    """
query PullRequestReviewComments($owner: String!, $name: String!, $number: Int!, $cursor: String) {
  repository(owner: $owner, name: $name) {
    pullRequest(number: $number) {
      reviewThreads(first: 25, after: $cursor) {
        pageInfo {
          hasNextPage
          endCursor
        }
        nodes {
          id
          comments(first: 100) {
            nodes {
              ...CommentFields
              ... on PullRequestReviewComment {
                pullRequestReview {
                  id
                }
              }
            }
          }
        }
      }
    }
  }
}
""",
    COMMENT_FIELDS,
    REACTION_FIELDS,
    ACTOR_FIELDS,
)

# -----------------------------------------------------------------------------
# Single Node
# -----------------------------------------------------------------------------
NODE_QUERY = _document(
    """
query ActivityNode($id: ID!) {
  node(id: $id) {
    __typename
    ... on Issue {
      ...IssueFields
      repository {
        ...RepositoryFields
      }
    }
    ... on PullRequest {
      ...PullRequestFields
      repository {
        ...RepositoryFields
      }
    }
    ... on Discussion {
      ...DiscussionFields
      repository {
        ...RepositoryFields
      }
    }
  }
}
""",
    ISSUE_FIELDS,
    PULL_REQUEST_FIELDS,
    DISCUSSION_FIELDS,
    REPOSITORY_FIELDS,
    PROJECT_ITEM_FIELDS,
    COMMENT_FIELDS,
    REQUESTED_REVIEWER_FIELDS,
    REACTION_FIELDS,
    ACTOR_FIELDS,
)
