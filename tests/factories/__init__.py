# Test factories: interface-specced mocks and domain builders
