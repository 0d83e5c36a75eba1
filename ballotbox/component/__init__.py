'''Named building blocks of election methods (divisors, pairwise win scorers).'''
