# ratecaster/queries.py
"""GraphQL documents sent to the rating index."""

_REVIEW_FIELDS = """
      id
      attestationId
      dappId
      starRating
      reviewText
      rater
"""

GET_PROJECT_REVIEWS = """
  query GetProjectReviews($dappId: Bytes!, $first: Int!, $skip: Int!) {
    dappRatingSubmitteds(where: { dappId: $dappId }, first: $first, skip: $skip) {%s}
  }
""" % _REVIEW_FIELDS

GET_USER_REVIEWS = """
  query GetUserReviews($rater: Bytes!, $first: Int!, $skip: Int!) {
    dappRatingSubmitteds(where: { rater: $rater }, first: $first, skip: $skip) {%s}
  }
""" % _REVIEW_FIELDS

GET_ALL_REVIEWS = """
  query GetAllReviews($first: Int!, $skip: Int!) {
    dappRatingSubmitteds(first: $first, skip: $skip) {%s}
  }
""" % _REVIEW_FIELDS

REVIEWS_COLLECTION = "dappRatingSubmitteds"
