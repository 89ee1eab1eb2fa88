"""GraphQL documents sent to the Shopify Admin API."""

PRODUCTS_VENDOR_TYPE_QUERY = """
query getProductTypes($first: Int!, $after: String) {
  products(first: $first, after: $after) {
    edges {
      cursor
      node {
        productType
        vendor
      }
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
"""

VENDORS_QUERY = """
query getVendors($first: Int!, $after: String) {
  productVendors(first: $first, after: $after) {
    edges {
      cursor
      node
    }
    pageInfo {
      hasNextPage
      endCursor
    }
  }
}
"""

TAXONOMY_CATEGORIES_QUERY = """
query getTaxonomyCategories($first: Int!, $after: String) {
  taxonomy {
    categories(first: $first, after: $after) {
      edges {
        node {
          id
          name
          fullName
          level
          isLeaf
        }
      }
      pageInfo {
        hasNextPage
        endCursor
      }
    }
  }
}
"""

SHOP_SETTINGS_QUERY = """
query getStoreSettings {
  shop {
    name
    myshopifyDomain
    weightUnit
    currencyCode
  }
}
"""

ACCESS_SCOPES_QUERY = """
query getAccessScopes {
  currentAppInstallation {
    accessScopes {
      handle
    }
  }
}
"""

DEFAULT_VARIANT_QUERY = """
query getProductVariants($productId: ID!) {
  product(id: $productId) {
    variants(first: 1) {
      edges {
        node {
          id
        }
      }
    }
  }
}
"""

PRODUCT_OPTIONS_CREATE_MUTATION = """
mutation productOptionsCreate($productId: ID!, $options: [OptionCreateInput!]!) {
  productOptionsCreate(productId: $productId, options: $options) {
    product {
      id
      options {
        id
        name
        position
        optionValues {
          id
          name
        }
      }
      variants(first: 250) {
        edges {
          node {
            id
            title
            selectedOptions {
              name
              value
            }
          }
        }
      }
    }
    userErrors {
      field
      message
    }
  }
}
"""

VARIANTS_BULK_UPDATE_MUTATION = """
mutation productVariantsBulkUpdate($productId: ID!, $variants: [ProductVariantsBulkInput!]!) {
  productVariantsBulkUpdate(productId: $productId, variants: $variants) {
    productVariants {
      id
      title
      price
      compareAtPrice
      sku
      barcode
    }
    userErrors {
      field
      message
    }
  }
}
"""

VARIANTS_BULK_CREATE_MUTATION = """
mutation productVariantsBulkCreate($productId: ID!, $variants: [ProductVariantsBulkInput!]!) {
  productVariantsBulkCreate(productId: $productId, variants: $variants) {
    productVariants {
      id
      title
      price
      sku
      barcode
    }
    userErrors {
      field
      message
    }
  }
}
"""
