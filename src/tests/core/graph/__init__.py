"""Test suite for the contentflow workflow engine.

1. Graph Store Tests (test_base.py)
   - Node creation, update and deletion
   - Edge management and the connect gesture
   - Document export and import

2. Node Tests (nodes/)
   - WorkflowNode and NodeContext
   - Source, processing, analysis and output handlers
   - Payload helpers

3. Run State (test_state.py)
   - Execution trace, listeners and capacity
   - Cancellation and run results

4. Configuration (test_config.py)
   - Engine configuration
   - Node kind registry

5. Execution (test_executor.py, test_runner.py)
   - Single node execution and error entries
   - Graph traversal, branching, cycles, stop and fan-out
"""
