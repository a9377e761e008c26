"""Middleware helpers: error codes, error stacks, nil replacement and interceptor chains."""