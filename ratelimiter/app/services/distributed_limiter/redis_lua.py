"""Redis Lua scripts for distributed rate limiting.

These scripts run the whole read-modify-write of a bucket inside Redis so
that concurrent callers on different hosts can never both observe the same
stale token count.
"""

# Lua script for the atomic token bucket check
# KEYS[1]: bucket hash (fields: tokens, last_refill)
# ARGV[1]: capacity, ARGV[2]: refill rate per second,
# ARGV[3]: now (epoch seconds), ARGV[4]: ttl seconds
# A missing hash is a full bucket; a clock behind last_refill refills nothing
TOKEN_BUCKET_SCRIPT = """
    local key = KEYS[1]
    local capacity = tonumber(ARGV[1])
    local refill_rate = tonumber(ARGV[2])
    local now = tonumber(ARGV[3])
    local ttl = tonumber(ARGV[4])

    local state = redis.call('HMGET', key, 'tokens', 'last_refill')
    local tokens = tonumber(state[1]) or capacity
    local last_refill = tonumber(state[2]) or now

    if now > last_refill then
        tokens = math.min(capacity, tokens + (now - last_refill) * refill_rate)
        last_refill = now
    end

    local allowed = 0
    if tokens >= 1.0 then
        tokens = tokens - 1.0
        allowed = 1
    end

    redis.call('HSET', key, 'tokens', tostring(tokens), 'last_refill', tostring(last_refill))
    redis.call('EXPIRE', key, ttl)

    return allowed
"""
