"""Chain constants: the cbETH contract address, sampling granularity and call selectors.

Block counts assume Ethereum mainnet's 12 second slot time.
"""

CBETH_ADDRESS = "0xBe9895146f7AF43049ca1c1AE358B0541Ea49704"

SECONDS_PER_BLOCK = 12
DAY_IN_SECONDS = 24 * 60 * 60
SECONDS_PER_YEAR = 365 * DAY_IN_SECONDS

BLOCK_GRANULARITY = DAY_IN_SECONDS // SECONDS_PER_BLOCK
BLOCKS_TO_QUERY = (3 * DAY_IN_SECONDS) // SECONDS_PER_BLOCK

# cbETH exchange rate is an 18-decimal fixed-point value
BACKING_DECIMALS = 18

# keccak256("exchangeRate()")[:4]
EXCHANGE_RATE_SELECTOR = "0x3ba0b9a9"
