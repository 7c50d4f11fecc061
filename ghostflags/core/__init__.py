# Core module - rules, cache, secret, configuration, evaluator
