"""
GraphQL documents for the Shopify bulk operation API.
"""

BULK_OPERATION_FIELDS = """
fragment BulkOperationFields on BulkOperation {
  id
  status
  objectCount
  query
  url
  errorCode
}
"""

OPERATION_STATUS = """
query OPERATION_STATUS {
  currentBulkOperation {
    ...BulkOperationFields
  }
}
""" + BULK_OPERATION_FIELDS

OPERATION_BY_ID = """
query OPERATION_BY_ID($id: ID!) {
  node(id: $id) {
    ... on BulkOperation {
      ...BulkOperationFields
    }
  }
}
""" + BULK_OPERATION_FIELDS

CANCEL_OPERATION = """
mutation CANCEL_OPERATION($id: ID!) {
  bulkOperationCancel(id: $id) {
    bulkOperation {
      ...BulkOperationFields
    }
    userErrors {
      field
      message
    }
  }
}
""" + BULK_OPERATION_FIELDS

BULK_OPERATION_RUN_QUERY = """
mutation BULK_OPERATION_RUN_QUERY($query: String!) {
  bulkOperationRunQuery(query: $query) {
    bulkOperation {
      ...BulkOperationFields
    }
    userErrors {
      field
      message
    }
  }
}
""" + BULK_OPERATION_FIELDS


# Bulk query bodies, keyed by job type
PRODUCTS_QUERY = """
{
  products {
    edges {
      node {
        id
        handle
        title
        description
        productType
        vendor
        tags
        createdAt
        updatedAt
        featuredImage {
          id
          altText
          originalSrc: url
        }
        images {
          edges {
            node {
              id
              altText
              originalSrc: url
            }
          }
        }
        variants {
          edges {
            node {
              id
              sku
              title
              price
              inventoryQuantity
            }
          }
        }
      }
    }
  }
}
"""

COLLECTIONS_QUERY = """
{
  collections {
    edges {
      node {
        id
        handle
        title
        description
        updatedAt
        image {
          id
          altText
          originalSrc: url
        }
        products {
          edges {
            node {
              id
            }
          }
        }
      }
    }
  }
}
"""

ORDERS_QUERY = """
{
  orders {
    edges {
      node {
        id
        name
        createdAt
        displayFinancialStatus
        displayFulfillmentStatus
        totalPriceSet {
          shopMoney {
            amount
            currencyCode
          }
        }
        lineItems {
          edges {
            node {
              id
              quantity
              sku
              title
            }
          }
        }
      }
    }
  }
}
"""

BULK_QUERIES = {
    "products": PRODUCTS_QUERY,
    "collections": COLLECTIONS_QUERY,
    "orders": ORDERS_QUERY,
}
